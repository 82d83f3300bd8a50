"""
Configuration helpers for the Sanaee directory.

Fixed product constants live at module level; everything that can vary per
deployment is read from the environment into a frozen Settings object so that
services/routers never fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

STORAGE_KEY = "sanaee_workers_v1"
MAX_IMAGE_BYTES = 2 * 1024 * 1024
MAX_IMAGE_PX = 400
JPEG_QUALITY = 80
DEFAULT_STORAGE_QUOTA = 5 * 1024 * 1024
MAX_PREVIEW_SESSIONS = 64

STORAGE_BACKENDS = ("json", "sql", "memory")
DEFAULT_DATA_FILE = Path(__file__).resolve().parents[2] / "data.json"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    storage_backend: str
    data_file: str
    database_url: str
    storage_quota_bytes: int
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    backend = (os.getenv("STORAGE_BACKEND") or "json").strip().lower()
    if backend not in STORAGE_BACKENDS:
        backend = "json"
    quota = _int(os.getenv("STORAGE_QUOTA_BYTES", str(DEFAULT_STORAGE_QUOTA)), DEFAULT_STORAGE_QUOTA)

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        storage_backend=backend,
        data_file=os.getenv("DATA_FILE") or str(DEFAULT_DATA_FILE),
        database_url=os.getenv("DATABASE_URL", ""),
        storage_quota_bytes=quota if quota > 0 else DEFAULT_STORAGE_QUOTA,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
