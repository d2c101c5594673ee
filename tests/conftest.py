import io

import pytest
from PIL import Image

from question_pool.images import to_data_url


class FakeModels:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeClient:
    """Stands in for genai.Client; records generate_content kwargs."""

    def __init__(self, response):
        self.models = FakeModels(response)


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (40, 30), "white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_data_url(png_bytes):
    return to_data_url(png_bytes, "image/png")
