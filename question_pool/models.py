from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Subject(str, Enum):
    MATEMATIK = "Matematik"
    FEN_BILIMLERI = "Fen Bilimleri"
    TURKCE = "Türkçe"
    INKILAP = "T.C. İnkılap Tarihi"
    INGILIZCE = "İngilizce"
    DIN_KULTURU = "Din Kültürü"
    DIGER = "Diğer"


class Status(str, Enum):
    NEW = "Yeni"
    NEEDS_REVIEW = "Tekrar Et"
    LEARNED = "Öğrenildi"


IMAGE_RESOLUTIONS = ("1K", "2K", "4K")


@dataclass(frozen=True)
class Question:
    id: str
    image_url: str            # data:<mime>;base64,... reference
    subject: Subject
    topic: str                # kazanım / konu
    question_text: str = ""   # extracted text
    teacher_note: str = ""
    student_note: str = ""
    date_added: int = 0       # epoch milliseconds
    status: Status = Status.NEW


@dataclass(frozen=True)
class GeneratedQuestion:
    id: str
    image_url: str
    subject: Subject
    topic: str
    created_at: int = 0


@dataclass
class AIAnalysisResult:
    subject: Subject
    topic: str
    extracted_text: str
    explanation: Optional[str] = None


@dataclass
class SearchResult:
    title: str
    uri: str


@dataclass
class StudyResources:
    text: str
    links: List[SearchResult] = field(default_factory=list)
