"""
Configuration Module for Form Builder
Centralizes environment variables, storage paths and validation limits.
"""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parents[2]

# --- Pagination ---
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# --- Form limits ---
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500
FEEDBACK_MAX_LENGTH = 1000
MAX_HEADER_IMAGES = 1
MAX_QUESTION_IMAGES = 10

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def get_database_url() -> str:
    """Return the SQLAlchemy URL of the document store."""
    return os.getenv("DATABASE_URL", "sqlite:///./formbuilder.db")


def get_media_dir() -> Path:
    """
    Resolve the directory where uploaded images are written.

    Returns:
        Path from MEDIA_DIR, or <repo>/media when unset.
    """
    raw = os.getenv("MEDIA_DIR")
    if raw:
        return Path(raw)
    return BASE_DIR / "media"


def get_media_url_prefix() -> str:
    return os.getenv("MEDIA_URL_PREFIX", "/uploads").rstrip("/")


def get_max_upload_bytes() -> int:
    return _env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)


def get_cors_origins() -> List[str]:
    """
    Parse CORS_ORIGINS (comma separated) into a list of origins.

    Falls back to the local development origins when unset or empty.
    """
    raw = os.getenv("CORS_ORIGINS", "")
    origins = [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
