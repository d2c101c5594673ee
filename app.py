import logging
from datetime import datetime

import streamlit as st

from question_pool import session
from question_pool.config import ACCEPTED_IMAGE_TYPES, configure_logging, load_settings
from question_pool.gemini_service import get_client
from question_pool.images import decode_data_url
from question_pool.models import IMAGE_RESOLUTIONS, Status, Subject
from question_pool.pdf_utils import build_generated_test_pdf, build_pool_pdf
from question_pool.pool import ALL_SUBJECTS, available_topics, compute_stats, filter_by_subject

SETTINGS = load_settings()
configure_logging(SETTINGS.log_level)
logger = logging.getLogger("lgs_app")

SUBJECT_LABELS = [s.value for s in Subject]
RESOLUTION_LABELS = {"1K": "1K (Standart)", "2K": "2K (Yüksek)", "4K": "4K (Ultra)"}
STATUS_ICONS = {Status.NEW: "🔵", Status.NEEDS_REVIEW: "🟠", Status.LEARNED: "🟢"}

# Configure page *before* other st.* calls
st.set_page_config(page_title="LGS Asistanı", page_icon="🎓", layout="wide")


# -------------------------------------------------
# Session state (in memory, gone on reload)
# -------------------------------------------------
def has_api_key() -> bool:
    return session.has_api_key(st.session_state)


@st.cache_resource(show_spinner=False)
def client_for(api_key: str):
    return get_client(api_key)


def ai_client():
    return client_for(st.session_state["api_key"].strip())


def image_bytes(url: str) -> bytes:
    return decode_data_url(url)[1]


def format_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%d.%m.%Y")


def connect_hint():
    st.info(
        "Yapay zeka özelliklerini kullanmak için kenar çubuğundan "
        "Gemini API anahtarını girerek bağlan."
    )


# -------------------------------------------------
# Add question flow
# -------------------------------------------------
def on_analyze():
    upload = st.session_state.get("add_image")
    if upload is not None:
        session.run_analysis(st.session_state, upload.getvalue(), upload.type, ai_client())


def open_add_dialog():
    session.reset_add_form(st.session_state)
    add_question_dialog()


@st.dialog("Soru Ekle", width="large")
def add_question_dialog():
    st.caption("Yanlış yaptığın soruyu yükle ve analiz et")

    upload = st.file_uploader(
        "Fotoğraf yüklemek için tıkla (PNG, JPG, max 5MB)",
        type=ACCEPTED_IMAGE_TYPES,
        key="add_image",
    )

    if upload is not None:
        st.image(upload.getvalue())
        if has_api_key():
            st.button("✨ Yapay Zeka ile Analiz Et (Gemini)", on_click=on_analyze)
        else:
            connect_hint()

    error = st.session_state.pop("add_error", None)
    if error:
        st.error(error)

    c1, c2 = st.columns(2)
    with c1:
        st.selectbox("Ders", SUBJECT_LABELS, key="add_subject")
    with c2:
        st.text_input("Konu / Kazanım", placeholder="Örn: Üslü Sayılar", key="add_topic")

    st.text_area(
        "Soru Metni (Otomatik)",
        placeholder="Yapay zeka burayı dolduracak...",
        key="add_text",
    )
    st.text_area(
        "Öğretmen Notu / Çözüm Detayı",
        placeholder="Öğretmeninin bu soru hakkında söylediği önemli noktaları buraya not et...",
        key="add_teacher_note",
    )
    st.text_area("Kendi Notun", key="add_student_note")

    can_save = session.can_save(st.session_state, upload is not None)

    left, right = st.columns(2)
    with left:
        if st.button("İptal"):
            session.reset_add_form(st.session_state)
            st.rerun()
    with right:
        if st.button("Kaydet", type="primary", disabled=not can_save):
            try:
                session.save_new_question(st.session_state, upload.getvalue(), upload.type)
            except ValueError as e:
                st.error(f"Soru kaydedilemedi: {e}")
                return
            st.rerun()


# -------------------------------------------------
# Question detail: status, edit, resources
# -------------------------------------------------
def on_select(question_id: str):
    session.select_question(st.session_state, question_id)


def on_close_detail():
    session.close_detail(st.session_state)


def on_toggle_status(question_id: str):
    session.toggle_question_status(st.session_state, question_id)


def render_resources(question):
    if st.button("🔎 Bu konu için kaynak ara", key=f"search_{question.id}"):
        if not has_api_key():
            connect_hint()
            return
        with st.spinner("Kaynaklar aranıyor..."):
            session.search_resources(st.session_state, question, ai_client())

    if st.session_state["search_error"]:
        st.error(st.session_state["search_error"])

    resources = st.session_state["resources"].get(question.id)
    if resources is not None:
        st.markdown(resources.text)
        for link in resources.links:
            st.markdown(f"- [{link.title}]({link.uri})")


# dismissing the dialog clears the selection and reruns the whole page,
# so the grid and stat tiles pick up edits made inside it
@st.dialog("Soru Detayı", width="large", on_dismiss=on_close_detail)
def question_detail_dialog():
    question = session.selected_question(st.session_state)
    if question is None:
        st.info("Bu soru artık havuzda değil.")
        return

    st.markdown(f"**{question.subject.value}** · {question.topic}")

    left, right = st.columns(2)
    with left:
        st.image(image_bytes(question.image_url))

    with right:
        st.caption("Öğrenme Durumu")
        st.markdown(f"{STATUS_ICONS[question.status]} **{question.status.value}**")
        label = "🔁 Tekrara Al" if question.status == Status.LEARNED else "✅ Öğrenildi İşaretle"
        st.button(label, on_click=on_toggle_status, args=(question.id,), key=f"toggle_{question.id}")

        st.markdown("**Soru Metni**")
        st.write(question.question_text or "Metin çıkarılamadı.")
        st.markdown("**🎓 Öğretmen Notu**")
        st.write(question.teacher_note or "Henüz öğretmen notu eklenmemiş.")
        st.markdown("**👤 Kendi Notun**")
        st.write(question.student_note or "Henüz kendi notunu eklememişsin.")

    with st.expander("✏️ Düzenle"):
        with st.form(f"edit_{question.id}"):
            subject = st.selectbox("Ders", SUBJECT_LABELS, index=SUBJECT_LABELS.index(question.subject.value))
            topic = st.text_input("Konu / Kazanım", value=question.topic)
            text = st.text_area("Soru Metni", value=question.question_text)
            teacher_note = st.text_area("Öğretmen Notu", value=question.teacher_note)
            student_note = st.text_area("Kendi Notun", value=question.student_note)
            if st.form_submit_button("Kaydet"):
                session.edit_question(
                    st.session_state,
                    question.id,
                    subject=Subject(subject),
                    topic=topic,
                    question_text=text,
                    teacher_note=teacher_note,
                    student_note=student_note,
                )
                st.rerun(scope="fragment")

    with st.expander("📚 Çalışma Kaynakları"):
        render_resources(question)

    if st.button("Kapat", key=f"close_{question.id}"):
        session.close_detail(st.session_state)
        st.rerun()


# -------------------------------------------------
# Delete with confirmation
# -------------------------------------------------
def on_request_delete(question_id: str):
    session.request_delete(st.session_state, question_id)


def on_confirm_delete():
    session.confirm_delete(st.session_state)


def on_cancel_delete():
    session.cancel_delete(st.session_state)


def render_delete_confirmation():
    if st.session_state["pending_delete"] is None:
        return
    st.warning("Bu soruyu silmek istediğinize emin misiniz? Bu işlem geri alınamaz.")
    c1, c2, _ = st.columns([1, 1, 6])
    c1.button("Evet, sil", type="primary", on_click=on_confirm_delete)
    c2.button("Vazgeç", on_click=on_cancel_delete)


# -------------------------------------------------
# Question pool tab
# -------------------------------------------------
def render_card(question):
    with st.container(border=True):
        st.image(image_bytes(question.image_url))
        st.markdown(f"{STATUS_ICONS[question.status]} {question.status.value}")
        st.markdown(f"**{question.subject.value}** · {question.topic}")

        preview = question.question_text or "Soru metni analizi..."
        if len(preview) > 120:
            preview = preview[:117] + "..."
        st.caption(preview)

        footer = f"🕒 {format_ms(question.date_added)}"
        if question.teacher_note:
            footer += " · 📘 Not Var"
        st.caption(footer)

        c1, c2 = st.columns(2)
        c1.button("Detay", key=f"open_{question.id}", on_click=on_select, args=(question.id,))
        c2.button("Sil", key=f"delete_{question.id}", on_click=on_request_delete, args=(question.id,))


def render_pool_tab():
    questions = st.session_state["questions"]
    stats = compute_stats(questions)

    c1, c2, c3 = st.columns(3)
    c1.metric("Toplam Soru", stats.total)
    c2.metric("Tekrar Edilmeli", stats.needs_review)
    c3.metric("Öğrenilen", stats.learned)

    filter_subject = st.radio(
        "Ders filtresi",
        [ALL_SUBJECTS, *SUBJECT_LABELS],
        horizontal=True,
        key="filter_subject",
        label_visibility="collapsed",
    )
    filtered = filter_by_subject(questions, filter_subject)
    st.caption(f"{len(filtered)} soru listeleniyor")

    render_delete_confirmation()

    if not filtered:
        st.markdown("### Henüz soru eklenmemiş")
        st.write("Yanlış yaptığın soruları ekleyerek soru havuzunu oluştur.")
        if st.button("İlk Sorunu Ekle"):
            open_add_dialog()
        return

    columns = st.columns(4)
    for i, question in enumerate(filtered):
        with columns[i % 4]:
            render_card(question)


# -------------------------------------------------
# Test generator tab
# -------------------------------------------------
def render_generated(generated):
    st.download_button(
        "⬇️ Deneme Sorularını PDF Olarak İndir",
        data=build_generated_test_pdf(generated),
        file_name="lgs-deneme-sorulari.pdf",
        mime="application/pdf",
    )

    columns = st.columns(2)
    for i, item in enumerate(generated):
        mime, data = decode_data_url(item.image_url)
        with columns[i % 2]:
            with st.container(border=True):
                st.image(data)
                st.markdown(f"**{item.subject.value}** · {item.topic}")
                st.caption("Generated by Gemini")
                st.download_button(
                    "Görseli İndir",
                    data=data,
                    file_name=f"lgs-soru-{item.id}.{mime.split('/')[-1]}",
                    mime=mime,
                    key=f"download_{item.id}",
                )


def render_test_tab():
    if not has_api_key():
        st.markdown("### Yapay Zeka Servis Sağlayıcısı Seçin")
        st.write(
            "Kişiselleştirilmiş testler oluşturmak ve görsel analiz yapmak "
            "için bir yapay zeka servisine bağlanın."
        )
        connect_hint()
        return

    c1, c2 = st.columns(2)
    with c1:
        subject_label = st.selectbox("Ders", SUBJECT_LABELS, key="gen_subject")
    with c2:
        resolution = st.selectbox(
            "Çözünürlük",
            IMAGE_RESOLUTIONS,
            format_func=lambda r: RESOLUTION_LABELS[r],
            key="gen_resolution",
        )

    subject = Subject(subject_label)
    topics = available_topics(st.session_state["questions"], subject)
    st.caption(
        f"Yapay zeka, havuzundaki {len(topics)} farklı {subject.value} konusundan "
        "yola çıkarak benzer bir soru üretecektir."
    )

    if st.button("✨ Test Sorusu Oluştur", type="primary"):
        with st.spinner("Oluşturuluyor..."):
            session.generate_practice_question(st.session_state, subject, resolution, ai_client())

    if st.session_state["generate_error"]:
        st.error(st.session_state["generate_error"])

    generated = st.session_state["generated"]
    if generated:
        render_generated(generated)
    else:
        st.caption("Henüz test sorusu oluşturulmadı.")


# -------------------------------------------------
# STREAMLIT APPLICATION
# -------------------------------------------------
def main():
    session.init_state(st.session_state, SETTINGS.api_key)

    with st.sidebar:
        st.title("🎓 LGS Asistanı")
        st.text_input(
            "Gemini API anahtarı",
            type="password",
            key="api_key",
            help="Görsel analiz, kaynak arama ve test oluşturma için gerekli.",
        )
        st.caption("Yapay zeka bağlı ✅" if has_api_key() else "Yapay zeka bağlı değil")

        if st.button("➕ Soru Ekle", type="primary"):
            open_add_dialog()

        st.download_button(
            "⬇️ PDF Olarak Kaydet",
            data=build_pool_pdf(st.session_state["questions"]),
            file_name="lgs-soru-havuzu.pdf",
            mime="application/pdf",
        )

    pool_tab, test_tab = st.tabs(["📚 Soru Havuzu", "✨ Test Oluştur (AI)"])
    with pool_tab:
        render_pool_tab()
    with test_tab:
        render_test_tab()

    if session.selected_question(st.session_state) is not None:
        question_detail_dialog()


if __name__ == "__main__":
    main()
