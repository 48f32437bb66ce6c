"""Launcher logging: a console handler plus a rotating debug log file.

The window runs without a console under ``pythonw``, so the file is the
record users attach to bug reports. The backend and the status enricher log
one line per subprocess; the console only shows those at INFO and above
unless tracing is requested.
"""

from __future__ import annotations

import logging as py_logging
import os
import sys
from collections.abc import Mapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

LOGGER_NAME = "devlauncher"
LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
CHATTY_LOGGERS: Mapping[str, int] = {
    "devlauncher.backend": py_logging.INFO,
    "devlauncher.ui.enricher": py_logging.INFO,
}
LOG_FILE_MAX_BYTES = 1_000_000
LOG_FILE_BACKUPS = 3
_LOG_DIR_PARTS = ("devlauncher", "logs", "devlauncher.log")
_FALLBACK_LOG_PATH = Path(".devlauncher/logs/devlauncher.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


class SubsystemFloor(py_logging.Filter):
    """Drops records from noisy subsystems below their floor level."""

    def __init__(self, floors: Mapping[str, int]) -> None:
        super().__init__()
        self.floors = dict(floors)

    def filter(self, record: py_logging.LogRecord) -> bool:
        for prefix, floor in self.floors.items():
            if record.name == prefix or record.name.startswith(prefix + "."):
                return record.levelno >= floor
        return True


def default_log_path(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    local_app_data = env.get("LOCALAPPDATA", "")
    if local_app_data:
        return Path(local_app_data, *_LOG_DIR_PARTS)
    try:
        resolved = Path("~/.config", *_LOG_DIR_PARTS).expanduser()
    except RuntimeError:
        return (Path.cwd() / _FALLBACK_LOG_PATH).resolve()
    if not resolved.is_absolute():
        resolved = resolved.resolve()
    return resolved


def _file_handler(log_file: str | Path) -> py_logging.Handler | None:
    try:
        log_path = Path(log_file).expanduser()
    except RuntimeError:
        log_path = Path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            log_path.resolve(),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError:
        return None


def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
    trace: bool = False,
) -> py_logging.Logger:
    normalized = level.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    console_level = LOG_LEVELS.get(normalized, py_logging.INFO)

    logger = py_logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        existing.close()
    logger.handlers.clear()
    formatter = py_logging.Formatter(_FORMAT)

    console = stream or sys.stderr
    if console is not None:
        handler = py_logging.StreamHandler(console)
        handler.setLevel(console_level)
        handler.setFormatter(formatter)
        if not trace:
            handler.addFilter(SubsystemFloor(CHATTY_LOGGERS))
        logger.addHandler(handler)

    file_handler = _file_handler(log_file) if log_file else None
    if file_handler is not None:
        file_handler.setLevel(py_logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # The file records DEBUG even when the console is quieter.
    logger.setLevel(py_logging.DEBUG if file_handler is not None else console_level)
    logger.propagate = False
    return logger
