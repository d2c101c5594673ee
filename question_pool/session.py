"""State transitions behind the Streamlit view.

Every function takes the session state as a plain mutable mapping, so the app
passes ``st.session_state`` and the tests pass a dict.
"""
import logging
import random
from dataclasses import replace
from typing import MutableMapping, Optional

from question_pool.gemini_service import (
    analyze_question_image,
    generate_test_question_image,
    search_study_resources,
)
from question_pool.images import check_upload, upload_to_data_url
from question_pool.models import GeneratedQuestion, Question, Subject
from question_pool.pool import (
    add_generated_question,
    add_question,
    apply_analysis,
    available_topics,
    delete_question,
    find_question,
    new_generated_question,
    new_question,
    pick_practice_topic,
    toggle_status,
    update_question,
)

logger = logging.getLogger(__name__)

ANALYSIS_FAILED = "Görüntü analiz edilemedi. Lütfen tekrar deneyin."
GENERATION_FAILED = "Soru oluşturulurken bir hata oluştu. Lütfen tekrar deneyin."
SEARCH_FAILED = "Kaynak aranırken bir hata oluştu. Lütfen tekrar deneyin."
UPLOAD_REJECTED = "Görsel yüklenemedi. Lütfen 5MB'dan küçük bir PNG veya JPG seçin."

# add-form widget keys -> apply_analysis field names
ADD_FORM_KEYS = {
    "add_subject": "subject",
    "add_topic": "topic",
    "add_text": "question_text",
    "add_student_note": "student_note",
}
ADD_FORM_EXTRA_KEYS = ("add_teacher_note", "add_image", "add_error")

State = MutableMapping


def init_state(state: State, api_key: str = "") -> None:
    defaults = {
        "questions": [],
        "generated": [],
        "resources": {},
        "pending_delete": None,
        "selected_question": None,
        "generate_error": None,
        "search_error": None,
        "api_key": api_key or "",
    }
    for key, value in defaults.items():
        if key not in state:
            state[key] = value


def has_api_key(state: State) -> bool:
    return bool((state.get("api_key") or "").strip())


# -------------------------------------------------
# Add question form
# -------------------------------------------------
def reset_add_form(state: State) -> None:
    for key in [*ADD_FORM_KEYS, *ADD_FORM_EXTRA_KEYS]:
        state.pop(key, None)


def can_save(state: State, has_image: bool) -> bool:
    """The save button needs an image and a non-blank topic."""
    return has_image and bool((state.get("add_topic") or "").strip())


def run_analysis(state: State, data: bytes, mime_type: str, client) -> bool:
    """Analyze the uploaded photo and prefill the add form.

    On failure the form is left as it was and ``add_error`` holds the message
    to show. Returns whether the form was filled.
    """
    try:
        check_upload(data, mime_type)
    except ValueError as e:
        logger.warning("Rejected upload before analysis: %s", e)
        state["add_error"] = UPLOAD_REJECTED
        return False

    try:
        result = analyze_question_image(data, mime_type, client=client)
    except Exception:
        # already logged by the adapter
        state["add_error"] = ANALYSIS_FAILED
        return False

    current = {field: state.get(key, "") for key, field in ADD_FORM_KEYS.items()}
    filled = apply_analysis(current, result)
    for key, field in ADD_FORM_KEYS.items():
        value = filled[field]
        state[key] = value.value if isinstance(value, Subject) else value
    state.pop("add_error", None)
    return True


def save_new_question(state: State, data: bytes, mime_type: str) -> Question:
    """Build a question from the add form, prepend it and clear the form.

    Raises ValueError when the image or topic is missing or the upload is
    rejected; the state is untouched in that case.
    """
    question = new_question(
        image_url=upload_to_data_url(data, mime_type),
        subject=Subject(state.get("add_subject") or Subject.MATEMATIK.value),
        topic=state.get("add_topic") or "",
        question_text=state.get("add_text") or "",
        teacher_note=state.get("add_teacher_note") or "",
        student_note=state.get("add_student_note") or "",
    )
    state["questions"] = add_question(state["questions"], question)
    reset_add_form(state)
    logger.info("Added question %s (%s / %s)", question.id, question.subject.value, question.topic)
    return question


# -------------------------------------------------
# Detail dialog
# -------------------------------------------------
def select_question(state: State, question_id: str) -> None:
    state["selected_question"] = question_id
    state["search_error"] = None


def close_detail(state: State) -> None:
    state["selected_question"] = None
    state["search_error"] = None


def selected_question(state: State) -> Optional[Question]:
    """The record the detail dialog shows, dropping a stale selection."""
    question_id = state.get("selected_question")
    if question_id is None:
        return None
    question = find_question(state["questions"], question_id)
    if question is None:
        state["selected_question"] = None
    return question


def store_update(state: State, updated: Question) -> None:
    state["questions"] = update_question(state["questions"], updated)
    state["selected_question"] = updated.id


def toggle_question_status(state: State, question_id: str) -> Optional[Question]:
    question = find_question(state["questions"], question_id)
    if question is None:
        return None
    updated = toggle_status(question)
    store_update(state, updated)
    logger.info("Question %s is now %s", question_id, updated.status.value)
    return updated


def edit_question(state: State, question_id: str, **fields) -> Optional[Question]:
    """Replace the whole record with the edited fields."""
    question = find_question(state["questions"], question_id)
    if question is None:
        return None
    updated = replace(question, **fields)
    store_update(state, updated)
    logger.info("Updated question %s", question_id)
    return updated


def search_resources(state: State, question: Question, client) -> bool:
    try:
        resources = search_study_resources(question.topic, client=client)
    except Exception:
        state["search_error"] = SEARCH_FAILED
        return False
    state["resources"][question.id] = resources
    state["search_error"] = None
    return True


# -------------------------------------------------
# Delete with confirmation
# -------------------------------------------------
def request_delete(state: State, question_id: str) -> None:
    state["pending_delete"] = question_id


def confirm_delete(state: State) -> None:
    question_id = state["pending_delete"]
    if question_id is None:
        return
    state["questions"] = delete_question(state["questions"], question_id)
    if state.get("selected_question") == question_id:
        state["selected_question"] = None
    state["resources"].pop(question_id, None)
    state["pending_delete"] = None
    logger.info("Deleted question %s", question_id)


def cancel_delete(state: State) -> None:
    state["pending_delete"] = None


# -------------------------------------------------
# Practice question generator
# -------------------------------------------------
def generate_practice_question(
    state: State,
    subject: Subject,
    resolution: str,
    client,
    rng: Optional[random.Random] = None,
) -> Optional[GeneratedQuestion]:
    topic = pick_practice_topic(available_topics(state["questions"], subject), rng=rng)
    try:
        image_url = generate_test_question_image(subject, topic, resolution, client=client)
    except Exception:
        state["generate_error"] = GENERATION_FAILED
        return None

    item = new_generated_question(image_url, subject, topic)
    state["generated"] = add_generated_question(state["generated"], item)
    state["generate_error"] = None
    return item
