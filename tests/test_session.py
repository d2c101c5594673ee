import random
from types import SimpleNamespace as NS

import pytest

from question_pool import session
from question_pool.config import MAX_UPLOAD_BYTES
from question_pool.models import SearchResult, Status, StudyResources, Subject
from question_pool.pool import find_question, new_question

ANALYSIS_JSON = (
    '{"subject": "Fen Bilimleri", "topic": "Basınç", '
    '"extractedText": "Katı basıncı neye bağlıdır?", "explanation": "Yüzey alanı"}'
)


@pytest.fixture
def state(png_data_url):
    state = {}
    session.init_state(state, api_key="key")
    state["questions"] = [
        new_question(png_data_url, Subject.MATEMATIK, "Olasılık", now=2),
        new_question(png_data_url, Subject.FEN_BILIMLERI, "Basınç", now=1),
    ]
    return state


def test_init_state_keeps_existing_values():
    state = {"questions": ["x"], "api_key": "mine"}
    session.init_state(state, api_key="env")
    assert state["questions"] == ["x"]
    assert state["api_key"] == "mine"
    assert state["selected_question"] is None
    assert state["pending_delete"] is None
    assert session.has_api_key(state)
    assert not session.has_api_key({"api_key": "   "})


def test_can_save_needs_image_and_topic():
    assert not session.can_save({"add_topic": "Olasılık"}, has_image=False)
    assert not session.can_save({"add_topic": "   "}, has_image=True)
    assert not session.can_save({}, has_image=True)
    assert session.can_save({"add_topic": "Olasılık"}, has_image=True)


def test_save_new_question_prepends_and_clears_form(state, png_bytes):
    state.update(
        add_subject="Türkçe",
        add_topic=" Fiilimsiler ",
        add_text="metin",
        add_teacher_note="dikkat",
        add_student_note="not",
        add_image=object(),
    )

    question = session.save_new_question(state, png_bytes, "image/png")

    assert state["questions"][0] == question
    assert question.subject == Subject.TURKCE
    assert question.topic == "Fiilimsiler"
    assert question.teacher_note == "dikkat"
    assert question.status == Status.NEW
    assert question.image_url.startswith("data:image/png;base64,")
    for key in ("add_subject", "add_topic", "add_text", "add_teacher_note", "add_student_note", "add_image"):
        assert key not in state


def test_save_new_question_without_topic_leaves_pool(state, png_bytes):
    state["add_topic"] = ""
    with pytest.raises(ValueError):
        session.save_new_question(state, png_bytes, "image/png")
    assert len(state["questions"]) == 2


def test_run_analysis_prefills_form(fake_client, png_bytes):
    state = {"add_student_note": "Birimi karıştırdım", "add_error": "old"}
    client = fake_client(NS(text=ANALYSIS_JSON))

    assert session.run_analysis(state, png_bytes, "image/png", client)

    assert state["add_subject"] == "Fen Bilimleri"
    assert state["add_topic"] == "Basınç"
    assert state["add_text"] == "Katı basıncı neye bağlıdır?"
    assert state["add_student_note"] == "Birimi karıştırdım\n\nAI İpucu: Yüzey alanı"
    assert "add_error" not in state


def test_run_analysis_failure_sets_message(fake_client, png_bytes):
    state = {"add_topic": "Olasılık"}
    client = fake_client(ConnectionError("boom"))

    assert not session.run_analysis(state, png_bytes, "image/png", client)

    assert state["add_error"] == "Görüntü analiz edilemedi. Lütfen tekrar deneyin."
    assert state["add_topic"] == "Olasılık"


def test_run_analysis_rejects_large_upload_without_calling_gemini(fake_client):
    state = {}
    client = fake_client(NS(text=ANALYSIS_JSON))
    too_big = b"\0" * (MAX_UPLOAD_BYTES + 1)

    assert not session.run_analysis(state, too_big, "image/png", client)

    assert state["add_error"] == session.UPLOAD_REJECTED
    assert client.models.calls == []
    assert "add_topic" not in state


def test_run_analysis_rejects_non_image(fake_client, png_bytes):
    state = {}
    client = fake_client(NS(text=ANALYSIS_JSON))
    assert not session.run_analysis(state, png_bytes, "application/pdf", client)
    assert client.models.calls == []


def test_edit_shows_updated_record(state):
    session.select_question(state, "1")

    session.edit_question(state, "1", topic="Sıvı Basıncı", student_note="Derinlik!")

    shown = session.selected_question(state)
    assert shown.id == "1"
    assert shown.topic == "Sıvı Basıncı"
    assert shown.student_note == "Derinlik!"
    assert shown.subject == Subject.FEN_BILIMLERI
    assert [q.id for q in state["questions"]] == ["2", "1"]


def test_toggle_shows_updated_status(state):
    session.select_question(state, "2")

    session.toggle_question_status(state, "2")
    assert session.selected_question(state).status == Status.LEARNED

    session.toggle_question_status(state, "2")
    assert session.selected_question(state).status == Status.NEEDS_REVIEW


def test_edit_unknown_question_is_noop(state):
    before = list(state["questions"])
    assert session.edit_question(state, "99", topic="x") is None
    assert session.toggle_question_status(state, "99") is None
    assert state["questions"] == before


def test_close_detail_clears_selection(state):
    session.select_question(state, "1")
    session.close_detail(state)
    assert state["selected_question"] is None
    assert session.selected_question(state) is None


def test_stale_selection_is_dropped(state):
    state["selected_question"] = "99"
    assert session.selected_question(state) is None
    assert state["selected_question"] is None


def test_confirm_delete_clears_selection_and_resources(state):
    state["resources"]["1"] = StudyResources("Özet", [SearchResult("MEB", "https://meb.gov.tr")])
    state["resources"]["2"] = StudyResources("Başka", [])
    session.select_question(state, "1")

    session.request_delete(state, "1")
    session.confirm_delete(state)

    assert find_question(state["questions"], "1") is None
    assert state["selected_question"] is None
    assert "1" not in state["resources"]
    assert "2" in state["resources"]
    assert state["pending_delete"] is None


def test_confirm_delete_keeps_other_selection(state):
    session.select_question(state, "2")
    session.request_delete(state, "1")
    session.confirm_delete(state)
    assert state["selected_question"] == "2"


def test_cancel_delete_keeps_question(state):
    session.request_delete(state, "1")
    session.cancel_delete(state)
    session.confirm_delete(state)
    assert len(state["questions"]) == 2
    assert state["pending_delete"] is None


def test_search_resources_caches_by_question(state, fake_client):
    metadata = NS(grounding_chunks=[NS(web=NS(uri="https://eba.gov.tr", title="EBA"))])
    client = fake_client(NS(text="Özet", candidates=[NS(grounding_metadata=metadata)]))
    question = find_question(state["questions"], "1")

    assert session.search_resources(state, question, client)

    assert state["resources"]["1"].links[0].title == "EBA"
    assert state["search_error"] is None


def test_search_resources_failure_sets_message(state, fake_client):
    question = find_question(state["questions"], "1")
    assert not session.search_resources(state, question, fake_client(RuntimeError("quota")))
    assert state["search_error"] == session.SEARCH_FAILED
    assert "1" not in state["resources"]


def test_generate_practice_question_uses_pool_topic(state, fake_client, png_bytes):
    part = NS(inline_data=NS(data=png_bytes, mime_type="image/png"))
    client = fake_client(NS(candidates=[NS(content=NS(parts=[part]))]))

    item = session.generate_practice_question(state, Subject.MATEMATIK, "1K", client, rng=random.Random(1))

    assert item.topic == "Olasılık"
    assert state["generated"] == [item]
    assert state["generate_error"] is None
    assert '"Olasılık"' in client.models.calls[0]["contents"]


def test_generate_practice_question_failure_sets_message(state, fake_client):
    client = fake_client(ConnectionError("boom"))

    assert session.generate_practice_question(state, Subject.TURKCE, "1K", client) is None

    assert state["generate_error"] == "Soru oluşturulurken bir hata oluştu. Lütfen tekrar deneyin."
    assert state["generated"] == []
