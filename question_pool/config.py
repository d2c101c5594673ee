import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


# ---------- MODELS ----------

ANALYSIS_MODEL = "gemini-3-pro-preview"
SEARCH_MODEL = "gemini-2.5-flash"
IMAGE_MODEL = "gemini-3-pro-image-preview"
IMAGE_ASPECT_RATIO = "4:3"  # standard question card format

# ---------- UPLOADS ----------

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ACCEPTED_IMAGE_TYPES = ["png", "jpg", "jpeg", "webp"]

# checked in order, first non-empty wins
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    api_key: Optional[str] = None
    log_level: str = "INFO"


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Read settings from the environment, after loading a .env file if present."""
    load_dotenv(dotenv_path)

    api_key = None
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name, "").strip()
        if value:
            api_key = value
            break

    log_level = os.getenv("LGS_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    return Settings(api_key=api_key, log_level=log_level)


def configure_logging(level: str = "INFO") -> None:
    # basicConfig is a no-op once the root logger has handlers (Streamlit reruns)
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
