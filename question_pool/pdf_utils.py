import io
import logging
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from question_pool.images import load_image
from question_pool.models import GeneratedQuestion, Question
from question_pool.pool import count_pending_review

logger = logging.getLogger(__name__)

A4_WIDTH, A4_HEIGHT = A4
MARGIN = 40
GUTTER = 20
LINE_HEIGHT = 14
IMAGE_MAX_HEIGHT = 350

TITLE = "LGS Asistanı - Soru Havuzu"

# the standard Type 1 fonts only cover WinAnsi, which has no ı ğ ş İ
FONT_DIR = Path(__file__).parent / "fonts"
FONT = "DejaVuSans"
FONT_BOLD = "DejaVuSans-Bold"


def register_fonts() -> None:
    registered = pdfmetrics.getRegisteredFontNames()
    for name in (FONT, FONT_BOLD):
        if name not in registered:
            pdfmetrics.registerFont(TTFont(name, str(FONT_DIR / f"{name}.ttf")))


def turkish_upper(text: str) -> str:
    """str.upper() with the Turkish dotted/dotless i pairs (i -> İ, ı -> I)."""
    return text.replace("i", "İ").replace("ı", "I").upper()


def format_date(value) -> str:
    """dd.mm.yyyy, the way the Turkish locale prints dates."""
    if isinstance(value, (int, float)):
        value = datetime.fromtimestamp(value / 1000)
    return value.strftime("%d.%m.%Y")


def _draw_block(c: canvas.Canvas, x: float, y: float, width: float, label: str, text: str) -> float:
    """Label line followed by wrapped text. Returns the y below the block."""
    c.setFont(FONT_BOLD, 8)
    c.drawString(x, y, label)
    y -= LINE_HEIGHT
    c.setFont(FONT, 10)
    for line in text.splitlines() or [""]:
        for wrapped in simpleSplit(line, FONT, 10, width) or [""]:
            c.drawString(x, y, wrapped)
            y -= LINE_HEIGHT
    return y - LINE_HEIGHT / 2


def _draw_header(c: canvas.Canvas, questions: List[Question], created: date) -> float:
    top = A4_HEIGHT - MARGIN
    c.setFont(FONT_BOLD, 18)
    c.drawString(MARGIN, top - 18, TITLE)
    c.setFont(FONT, 9)
    c.drawString(MARGIN, top - 34, f"{format_date(created)} tarihinde oluşturuldu")

    right = A4_WIDTH - MARGIN
    c.setFont(FONT_BOLD, 10)
    c.drawRightString(right, top - 18, f"Toplam Soru: {len(questions)}")
    c.setFont(FONT, 8)
    c.drawRightString(right, top - 32, f"{count_pending_review(questions)} Tekrar Bekleyen")

    c.line(MARGIN, top - 44, right, top - 44)
    return top - 44 - 2 * LINE_HEIGHT


def _draw_question(c: canvas.Canvas, question: Question, index: int, top: float) -> None:
    col_width = (A4_WIDTH - 2 * MARGIN - GUTTER) / 2

    # left column: the photographed question
    try:
        img = load_image(question.image_url)
        scale = min(col_width / img.width, IMAGE_MAX_HEIGHT / img.height)
        w, h = img.width * scale, img.height * scale
        c.drawImage(ImageReader(img), MARGIN, top - h, width=w, height=h, preserveAspectRatio=True)
    except (ValueError, OSError) as e:
        # unreadable image reference, print the details anyway
        logger.warning("Skipping image of question %s: %s", question.id, e)
        c.setFont(FONT, 9)
        c.drawString(MARGIN, top - LINE_HEIGHT, f"Soru {index} görseli yok")

    # right column: details
    x = MARGIN + col_width + GUTTER
    y = top - 10
    c.setFont(FONT_BOLD, 9)
    c.drawString(x, y, turkish_upper(question.subject.value))
    c.setFont(FONT, 8)
    c.drawRightString(A4_WIDTH - MARGIN, y, question.status.value)
    y -= LINE_HEIGHT
    c.setFont(FONT_BOLD, 11)
    for wrapped in simpleSplit(question.topic, FONT_BOLD, 11, col_width) or [""]:
        c.drawString(x, y, wrapped)
        y -= LINE_HEIGHT
    y -= LINE_HEIGHT / 2

    y = _draw_block(c, x, y, col_width, "SORU METNİ", question.question_text or "Metin yok")
    if question.teacher_note:
        y = _draw_block(c, x, y, col_width, "ÖĞRETMEN NOTU", question.teacher_note)
    if question.student_note:
        y = _draw_block(c, x, y, col_width, "ÖĞRENCİ NOTU", question.student_note)

    c.setFont(FONT, 8)
    c.drawString(x, y, f"Eklendiği Tarih: {format_date(question.date_added)}")


def build_pool_pdf(questions: List[Question], created: Optional[date] = None) -> bytes:
    """Printable A4 document of the whole pool, one question per page."""
    created = created or date.today()
    register_fonts()
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(TITLE)

    top = _draw_header(c, questions, created)

    if not questions:
        c.setFont(FONT, 11)
        c.drawCentredString(A4_WIDTH / 2, top - 40, "Henüz soru havuzunda soru bulunmamaktadır.")

    for index, question in enumerate(questions, start=1):
        if index > 1:
            c.showPage()
            top = A4_HEIGHT - MARGIN
        _draw_question(c, question, index, top)

    c.showPage()
    c.save()
    logger.info("Built pool PDF with %d questions", len(questions))
    return buf.getvalue()


def build_generated_test_pdf(generated: List[GeneratedQuestion]) -> bytes:
    """PDF with one page per generated question image, newest first."""
    if not generated:
        raise ValueError("no generated questions to export")

    writer = PdfWriter()
    for item in generated:
        img = load_image(item.image_url).convert("RGB")
        page_buf = io.BytesIO()
        img.save(page_buf, format="PDF")
        page_buf.seek(0)
        writer.add_page(PdfReader(page_buf).pages[0])

    writer.add_metadata({"/Title": "LGS Asistanı - Deneme Soruları"})

    out = io.BytesIO()
    writer.write(out)
    logger.info("Built practice test PDF with %d pages", len(generated))
    return out.getvalue()
