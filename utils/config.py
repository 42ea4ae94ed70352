"""Application configuration read from environment variables.

`main.py` loads a `.env` file (if present) before `AppConfig.from_env()` is
called, so values may come from either source.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SUPPORTED_BACKENDS = ("supabase", "sqlite")


def _require(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise RuntimeError(f"{name} environment variable is not set")
    return value.strip()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not an integer") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a number") from exc


@dataclass(frozen=True)
class AppConfig:
    """Resolved settings for one application instance."""

    supabase_url: str
    supabase_anon_key: str
    record_store_backend: str = "supabase"
    database_dir: Optional[Path] = None
    geocoder_api_key: Optional[str] = None
    display_timezone: str = "UTC"
    history_page_size: int = 10
    notice_seconds: float = 3.0
    http_timeout_seconds: float = 10.0
    session_idle_seconds: float = 8 * 3600.0

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build the config from the process environment.

        Raises:
            RuntimeError: If a required variable is missing or malformed.
        """
        backend = (os.getenv("RECORD_STORE_BACKEND") or "supabase").strip().lower()
        if backend not in SUPPORTED_BACKENDS:
            raise RuntimeError(
                f"RECORD_STORE_BACKEND={backend!r} is not supported. "
                f"Use one of: {', '.join(SUPPORTED_BACKENDS)}"
            )

        database_dir: Optional[Path] = None
        if backend == "sqlite":
            database_dir = Path(_require("DATABASE_DIR")).expanduser()

        page_size = _int_env("HISTORY_PAGE_SIZE", 10)
        if page_size < 1:
            raise RuntimeError("HISTORY_PAGE_SIZE must be at least 1")

        idle_seconds = _float_env("SESSION_IDLE_SECONDS", 8 * 3600.0)
        if idle_seconds <= 0:
            raise RuntimeError("SESSION_IDLE_SECONDS must be positive")

        return cls(
            supabase_url=_require("SUPABASE_URL").rstrip("/"),
            supabase_anon_key=_require("SUPABASE_ANON_KEY"),
            record_store_backend=backend,
            database_dir=database_dir,
            geocoder_api_key=(os.getenv("GEOCODER_API_KEY") or "").strip() or None,
            display_timezone=(os.getenv("DISPLAY_TIMEZONE") or "UTC").strip(),
            history_page_size=page_size,
            notice_seconds=_float_env("NOTICE_SECONDS", 3.0),
            http_timeout_seconds=_float_env("HTTP_TIMEOUT_SECONDS", 10.0),
            session_idle_seconds=idle_seconds,
        )
