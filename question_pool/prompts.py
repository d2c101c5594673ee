from question_pool.models import Subject


# ---------- PROMPTS ----------
# reference curriculum the classifier is asked to match topics against

LGS_CURRICULUM_CONTEXT = """
ANALİZ İÇİN REFERANS MÜFREDAT (8. SINIF LGS):

1. TÜRKÇE:
- Söz Varlığı (Deyimler, Atasözleri, Özdeyişler)
- Söz Sanatları (Benzetme, Kişileştirme, Konuşturma, Tezat, Abartma)
- Fiilimsiler (İsim-Fiil, Sıfat-Fiil, Zarf-Fiil)
- Cümlenin Öğeleri
- Yazım ve Noktalama Kuralları
- Metin Türleri (Fıkra, Makale, Deneme, Roman, Destan)
- Metinde Anlam (Ana Fikir, Yardımcı Fikir, Başlık, Konu)
- Görsel Okuma ve Grafik Yorumlama
- Geçiş ve Bağlantı İfadeleri

2. MATEMATİK:
- Çarpanlar ve Katlar (EBOB, EKOK)
- Üslü İfadeler (Çözümleme, Bilimsel Gösterim)
- Kareköklü İfadeler (Tam Kare, Kök Dışına Çıkarma, İşlemler)
- Veri Analizi (Çizgi, Sütun, Daire Grafiği)
- Basit Olayların Olma Olasılığı
- Cebirsel İfadeler ve Özdeşlikler

3. FEN BİLİMLERİ:
- Mevsimlerin Oluşumu
- İklim ve Hava Hareketleri
- DNA ve Genetik Kod
- Kalıtım (Çaprazlama, Akraba Evliliği)
- Mutasyon ve Modifikasyon
- Adaptasyon (Doğal Seçilim)
- Biyoteknoloji
- Basınç (Katı, Sıvı, Gaz)
- Periyodik Sistem
- Fiziksel ve Kimyasal Değişimler
- Kimyasal Tepkimeler
- Asitler ve Bazlar

4. T.C. İNKILAP TARİHİ VE ATATÜRKÇÜLÜK:
- Bir Kahraman Doğuyor (Mustafa Kemal'in Hayatı, Kişilik Özellikleri)
- Milli Uyanış: Bağımsızlık Yolunda Atılan Adımlar (I. Dünya Savaşı, Cemiyetler, Kuvâ-yı Milliye, TBMM)
- Milli Bir Destan: Ya İstiklal Ya Ölüm (Cepheler, Maarif Kongresi, Tekalif-i Milliye)

5. DİN KÜLTÜRÜ VE AHLAK BİLGİSİ:
- Kader İnancı (Kaza ve Kader, Sünnetullah, İrade)
- Zekât ve Sadaka (İnfak, Nisap, Öşür)
- Din ve Hayat (Din, Birey ve Toplum; Dinin Temel Gayesi)

Lütfen görseldeki soruyu bu listeye göre sınıflandır.
"""

ANALYSIS_INSTRUCTION = (
    "Bu bir LGS (Liselere Giriş Sınavı) hazırlık sorusu. Lütfen bu görseli analiz et. "
    "Sorunun hangi derse ait olduğunu belirle, yukarıdaki listeyi kullanarak konusunu "
    "(kazanımını) tespit et ve sorudaki metni çıkar."
)

SEARCH_PROMPT_TEMPLATE = (
    'LGS sınavı müfredatına göre "{topic}" konusu hakkında bilgi ver. '
    "Öğrencinin bu kazanımı elde etmesi için bilmesi gereken kritik noktaları "
    "ve çalışma önerilerini özetle."
)

IMAGE_PROMPT_TEMPLATE = """
Türkiye 8. Sınıf LGS (Liselere Giriş Sınavı) formatında, {subject} dersi "{topic}" konusu ile ilgili,
okunaklı, görsel açıdan temiz, Türkçe bir deneme sınavı sorusu oluştur.
Soru metni ve şıklar görselin içinde net bir şekilde yer almalıdır.
Arka plan beyaz veya açık renk olmalı, bir ders kitabı sayfası gibi görünmelidir.
"""

# schema field descriptions
SUBJECT_DESCRIPTION = "LGS Curriculum Subject"
TOPIC_DESCRIPTION = (
    "Specific topic or learning outcome (Kazanım) exactly matching the provided list "
    "if possible (e.g., 'Üslü İfadeler', 'DNA ve Genetik Kod')"
)
EXTRACTED_TEXT_DESCRIPTION = "The text content of the question"
EXPLANATION_DESCRIPTION = "A brief hint or summary of what the question is testing"

# ---------- FALLBACK TEXT ----------

FALLBACK_TOPIC = "Genel Tekrar"
NO_INFO_TEXT = "Bilgi bulunamadı."
AI_HINT_PREFIX = "AI İpucu: "


def build_analysis_prompt() -> str:
    return f"{LGS_CURRICULUM_CONTEXT}\n\n{ANALYSIS_INSTRUCTION}"


def build_search_prompt(topic: str) -> str:
    return SEARCH_PROMPT_TEMPLATE.format(topic=topic)


def build_image_prompt(subject: Subject, topic: str) -> str:
    return IMAGE_PROMPT_TEMPLATE.format(subject=Subject(subject).value, topic=topic)


__all__ = [
    # prompt text
    "LGS_CURRICULUM_CONTEXT",
    "ANALYSIS_INSTRUCTION",
    "SEARCH_PROMPT_TEMPLATE",
    "IMAGE_PROMPT_TEMPLATE",
    "SUBJECT_DESCRIPTION",
    "TOPIC_DESCRIPTION",
    "EXTRACTED_TEXT_DESCRIPTION",
    "EXPLANATION_DESCRIPTION",

    # fallbacks
    "FALLBACK_TOPIC",
    "NO_INFO_TEXT",
    "AI_HINT_PREFIX",

    # builders
    "build_analysis_prompt",
    "build_search_prompt",
    "build_image_prompt",
]
