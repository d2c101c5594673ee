import random
import time
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from question_pool.models import (
    AIAnalysisResult,
    GeneratedQuestion,
    Question,
    Status,
    Subject,
)
from question_pool.prompts import AI_HINT_PREFIX, FALLBACK_TOPIC

ALL_SUBJECTS = "Tümü"  # filter sentinel


@dataclass(frozen=True)
class PoolStats:
    total: int
    needs_review: int
    learned: int


def now_ms() -> int:
    return int(time.time() * 1000)


# -------------------------------------------------
# Creating records
# -------------------------------------------------
def new_question(
    image_url: str,
    subject: Subject,
    topic: str,
    question_text: str = "",
    teacher_note: str = "",
    student_note: str = "",
    now: Optional[int] = None,
) -> Question:
    """Build a fresh Question from the add form. Needs an image and a topic."""
    if not image_url:
        raise ValueError("a question needs an image")
    if not topic or not topic.strip():
        raise ValueError("a question needs a topic")

    ts = now_ms() if now is None else now
    return Question(
        id=str(ts),
        image_url=image_url,
        subject=Subject(subject),
        topic=topic.strip(),
        question_text=question_text,
        teacher_note=teacher_note,
        student_note=student_note,
        date_added=ts,
        status=Status.NEW,
    )


def new_generated_question(
    image_url: str,
    subject: Subject,
    topic: str,
    now: Optional[int] = None,
) -> GeneratedQuestion:
    ts = now_ms() if now is None else now
    return GeneratedQuestion(
        id=str(ts),
        image_url=image_url,
        subject=Subject(subject),
        topic=topic,
        created_at=ts,
    )


# -------------------------------------------------
# Collection transitions (each returns a new list)
# -------------------------------------------------
def add_question(questions: List[Question], question: Question) -> List[Question]:
    return [question, *questions]


def update_question(questions: List[Question], updated: Question) -> List[Question]:
    return [updated if q.id == updated.id else q for q in questions]


def delete_question(questions: List[Question], question_id: str) -> List[Question]:
    return [q for q in questions if q.id != question_id]


def find_question(questions: Iterable[Question], question_id: str) -> Optional[Question]:
    for q in questions:
        if q.id == question_id:
            return q
    return None


def add_generated_question(
    generated: List[GeneratedQuestion], item: GeneratedQuestion
) -> List[GeneratedQuestion]:
    return [item, *generated]


def toggle_status(question: Question) -> Question:
    """Learned goes back to review; anything else is marked learned."""
    if question.status == Status.LEARNED:
        next_status = Status.NEEDS_REVIEW
    else:
        next_status = Status.LEARNED
    return replace(question, status=next_status)


# -------------------------------------------------
# Derived views
# -------------------------------------------------
def filter_by_subject(questions: Iterable[Question], subject=None) -> List[Question]:
    if subject is None or subject == ALL_SUBJECTS:
        return list(questions)
    wanted = Subject(subject)
    return [q for q in questions if q.subject == wanted]


def compute_stats(questions: Iterable[Question]) -> PoolStats:
    questions = list(questions)
    pending = {Status.NEW, Status.NEEDS_REVIEW}
    return PoolStats(
        total=len(questions),
        needs_review=sum(1 for q in questions if q.status in pending),
        learned=sum(1 for q in questions if q.status == Status.LEARNED),
    )


def count_pending_review(questions: Iterable[Question]) -> int:
    return sum(1 for q in questions if q.status == Status.NEEDS_REVIEW)


def available_topics(questions: Iterable[Question], subject: Subject) -> List[str]:
    """Distinct topics recorded for a subject, in first-seen order."""
    wanted = Subject(subject)
    seen = set()
    topics: List[str] = []
    for q in questions:
        if q.subject != wanted or q.topic in seen:
            continue
        seen.add(q.topic)
        topics.append(q.topic)
    return topics


def pick_practice_topic(topics: List[str], rng: Optional[random.Random] = None) -> str:
    if not topics:
        return FALLBACK_TOPIC
    return (rng or random).choice(topics)


def apply_analysis(fields: dict, result: AIAnalysisResult) -> dict:
    """
    Prefill add-form fields from an analysis result.

    Subject, topic and question text are overwritten. An explanation is
    appended to the student note as an AI hint.
    """
    out = dict(fields)
    out["subject"] = result.subject
    out["topic"] = result.topic
    out["question_text"] = result.extracted_text

    if result.explanation:
        hint = f"{AI_HINT_PREFIX}{result.explanation}"
        previous = out.get("student_note") or ""
        out["student_note"] = f"{previous}\n\n{hint}" if previous else hint

    return out
