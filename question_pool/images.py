import base64
import binascii
import io
import re
from typing import Tuple

from PIL import Image

from question_pool.config import MAX_UPLOAD_BYTES

# data:<mime>;base64,<payload>
DATA_URL_RE = re.compile(
    r"""^data:
        (?P<mime>[\w.+-]+/[\w.+-]+)   # mime type
        ;base64,
        (?P<payload>.*)$
    """,
    re.VERBOSE | re.DOTALL,
)


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def split_data_url(url: str) -> Tuple[str, str]:
    """Return (mime_type, base64 payload) of a data URL."""
    m = DATA_URL_RE.match(url or "")
    if not m:
        raise ValueError("not a base64 data URL")
    return m.group("mime"), m.group("payload")


def decode_data_url(url: str) -> Tuple[str, bytes]:
    mime, payload = split_data_url(url)
    try:
        return mime, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e


def check_upload(data: bytes, mime_type: str) -> None:
    """Reject anything that is not an image or is over the upload limit."""
    if not mime_type or not mime_type.startswith("image/"):
        raise ValueError(f"unsupported upload type: {mime_type!r}")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValueError(
            f"image is {len(data)} bytes, limit is {MAX_UPLOAD_BYTES} bytes"
        )


def upload_to_data_url(data: bytes, mime_type: str) -> str:
    check_upload(data, mime_type)
    return to_data_url(data, mime_type)


def load_image(url: str) -> Image.Image:
    _, data = decode_data_url(url)
    img = Image.open(io.BytesIO(data))
    img.load()
    return img
