"""Logging setup for the Streamlit pages.

Records go to stderr and to a size-rotated log file that the Settings page
can display, download and clear. Rotated files older than the retention
period are removed when logging is first configured.
"""

import logging
import os
import time
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_FILE = "gestion.log"
DEFAULT_RETENTION_DAYS = 30

# HTTP connection chatter from requests is only useful when debugging it.
QUIET_LOGGERS = ("urllib3",)

_active: Optional["LogSettings"] = None


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class LogSettings:
    file: Path
    level: int = logging.INFO
    retention_days: int = DEFAULT_RETENTION_DAYS
    max_bytes: int = 1_000_000
    backups: int = 3

    @classmethod
    def from_env(cls) -> "LogSettings":
        """Read ``LOG_FILE``, ``LOG_LEVEL`` and ``LOG_RETENTION_DAYS``."""
        level_name = os.getenv("LOG_LEVEL", "INFO").upper()
        return cls(
            file=Path(os.getenv("LOG_FILE", DEFAULT_LOG_FILE)),
            level=getattr(logging, level_name, logging.INFO),
            retention_days=_env_int("LOG_RETENTION_DAYS", DEFAULT_RETENTION_DAYS),
        )


def configure_logging(settings: Optional[LogSettings] = None) -> LogSettings:
    """Attach the file and stream handlers to the root logger once.

    Every page script calls this before its other imports and Streamlit
    reruns scripts on each interaction, so later calls return the settings
    already in effect.
    """

    global _active
    if _active is not None:
        return _active

    settings = settings or LogSettings.from_env()
    formatter = logging.Formatter(LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(settings.level)

    file_handler = RotatingFileHandler(
        settings.file, maxBytes=settings.max_bytes, backupCount=settings.backups
    )
    stream_handler = logging.StreamHandler()
    for handler in (file_handler, stream_handler):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if settings.level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _active = settings
    removed = purge_rotated_logs(settings)
    if removed:
        logging.getLogger(__name__).info("Removed %d expired log files", removed)
    return settings


def active_log_file() -> Path:
    return (_active or LogSettings.from_env()).file


def purge_rotated_logs(settings: LogSettings) -> int:
    """Delete rotated copies of the log file past their retention period.

    The live log file is never touched. Returns how many files were removed.
    """

    if settings.retention_days <= 0:
        return 0
    live = settings.file.resolve()
    cutoff = time.time() - settings.retention_days * 86_400
    removed = 0
    for path in live.parent.glob(f"{live.name}.*"):
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
        except FileNotFoundError:
            continue
    return removed


def read_recent_logs(limit: int = 100, log_file: Optional[Path] = None) -> str:
    """Return the last ``limit`` lines of the log, or ``""`` if unreadable."""

    path = Path(log_file or active_log_file())
    try:
        with path.open("r", encoding="utf-8") as fh:
            return "".join(fh.readlines()[-limit:])
    except OSError:
        return ""


def clear_logs(log_file: Optional[Path] = None) -> None:
    for handler in logging.getLogger().handlers:
        handler.flush()
    Path(log_file or active_log_file()).write_text("", encoding="utf-8")
