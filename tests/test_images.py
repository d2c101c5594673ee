import base64

import pytest

from question_pool.config import MAX_UPLOAD_BYTES
from question_pool.images import (
    check_upload,
    decode_data_url,
    load_image,
    split_data_url,
    to_data_url,
    upload_to_data_url,
)


def test_to_data_url_and_split():
    url = to_data_url(b"\x89PNG-ish", "image/png")
    assert url.startswith("data:image/png;base64,")
    mime, payload = split_data_url(url)
    assert mime == "image/png"
    assert base64.b64decode(payload) == b"\x89PNG-ish"


def test_split_data_url_rejects_plain_urls():
    with pytest.raises(ValueError):
        split_data_url("https://example.com/soru.png")
    with pytest.raises(ValueError):
        split_data_url("")


def test_decode_data_url_rejects_bad_base64():
    with pytest.raises(ValueError):
        decode_data_url("data:image/png;base64,@@@")


def test_check_upload_limits():
    check_upload(b"x" * 10, "image/jpeg")
    with pytest.raises(ValueError):
        check_upload(b"x", "application/pdf")
    with pytest.raises(ValueError):
        check_upload(b"x" * (MAX_UPLOAD_BYTES + 1), "image/png")


def test_upload_to_data_url(png_bytes):
    url = upload_to_data_url(png_bytes, "image/png")
    assert decode_data_url(url) == ("image/png", png_bytes)


def test_load_image(png_data_url):
    img = load_image(png_data_url)
    assert img.size == (40, 30)
