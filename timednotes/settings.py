from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QSettings, QStandardPaths

APP_NAME = "timednotes"
ORG_NAME = "timednotes"

DATA_DIR_NAME = "TimedNotesApp"
DATA_FILENAME = "notes.csv"

APP_HOME = Path.home() / f".{APP_NAME}"
LOG_DIR = APP_HOME / "logs"
LOG_PATH = LOG_DIR / f"{APP_NAME}.log"
RECOVERY_DIR = APP_HOME / "recovery"


@dataclass(frozen=True)
class SettingsKeys:
    DATA_FILE: str = "storage/data_file"
    HIDE_COMPLETED: str = "view/hide_completed"


def open_settings() -> QSettings:
    # QSettings picks the right per-user location for the OS
    return QSettings(ORG_NAME, APP_NAME)


def get_str(settings: QSettings, key: str, default: str) -> str:
    try:
        val = settings.value(key, default)
        return str(val) if val is not None else default
    except Exception:
        return default


def get_bool(settings: QSettings, key: str, default: bool) -> bool:
    try:
        val = settings.value(key, default)
    except Exception:
        return default
    if isinstance(val, bool):
        return val
    # INI backends hand back strings
    if isinstance(val, str):
        v = val.strip().lower()
        if v in ("true", "1", "yes", "on"):
            return True
        if v in ("false", "0", "no", "off"):
            return False
        return default
    if isinstance(val, int):
        return bool(val)
    return default


def documents_dir() -> Path:
    loc = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.DocumentsLocation)
    return Path(loc) if loc else Path.home() / "Documents"


def default_data_path() -> Path:
    return documents_dir() / DATA_DIR_NAME / DATA_FILENAME


def resolve_data_path(settings: QSettings | None, override: str | Path | None = None) -> Path:
    """explicit override > persisted setting > <Documents>/TimedNotesApp/notes.csv"""
    if override:
        return Path(override).expanduser()
    if settings is not None:
        stored = get_str(settings, SettingsKeys.DATA_FILE, "").strip()
        if stored:
            return Path(stored).expanduser()
    return default_data_path()
