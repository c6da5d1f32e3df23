# settings.py
from __future__ import annotations

import logging
import os
import sys
from datetime import timedelta, timezone
from pathlib import Path

from domain import StorageError

APP_NAME = "shiftlog"
DB_NAME = "shiftlog.db"

# =========================
# Reglas de jornada
# =========================
TARGET_SECONDS = 9 * 3600          # objetivo diario
NEAR_WINDOW_SECONDS = 3600         # primera hora sobre el objetivo
DEFAULT_LIST_COUNT = 3

# Hora fija -06:00 para --time y para el importador
FIXED_TZ = timezone(timedelta(hours=-6))

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_log_level(name: str | None) -> str:
    """Level name for logging.basicConfig; unknown names fall back to WARNING."""
    level = (name or "WARNING").upper()
    if not isinstance(logging.getLevelName(level), int):
        return "WARNING"
    return level


LOG_LEVEL = resolve_log_level(os.getenv("SHIFTLOG_LOG_LEVEL"))


def user_data_dir() -> Path:
    """Per-user data directory, overridable with SHIFTLOG_DATA_DIR."""
    env = os.getenv("SHIFTLOG_DATA_DIR")
    if env:
        return Path(env)
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming"
        return Path(base) / APP_NAME
    base = os.environ.get("XDG_DATA_HOME") or (Path.home() / ".local" / "share")
    return Path(base) / APP_NAME


def database_url(data_dir: Path | None = None) -> str:
    url = os.getenv("SHIFTLOG_DATABASE_URL")
    if url:
        return url
    d = data_dir or user_data_dir()
    try:
        d.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"cannot create data directory {d}: {e}") from e
    return f"sqlite:///{(d / DB_NAME).as_posix()}"
