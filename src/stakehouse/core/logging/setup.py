from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .json_formatter import JSONFormatter

_LOGGER_NAME = "stakehouse"
_CONFIGURED_ATTR = "_stakehouse_json_logging"

# Libraries whose records share our handlers, so scheduler misfires and
# transport failures land in the same redacted JSON stream.
_LIBRARY_LOGGERS = ("apscheduler", "httpx", "stellar_sdk")


def _parse_level(raw: str, default: int = logging.INFO) -> int:
    normalized = raw.strip().upper()
    level = getattr(logging, normalized, default)
    return level if isinstance(level, int) else default


def _is_on(name: str, default: str = "on") -> bool:
    return os.getenv(name, default).strip().casefold() == "on"


def _build_handlers(state_dir: Path, formatter: logging.Formatter) -> list[logging.Handler]:
    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [stdout_handler]

    if _is_on("STAKEHOUSE_LOG_TO_FILE", "on"):
        log_dir = Path(os.getenv("STAKEHOUSE_LOG_DIR") or (state_dir / "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_dir / "stakehouse.log",
            maxBytes=int(os.getenv("STAKEHOUSE_LOG_MAX_BYTES", "5000000")),
            backupCount=int(os.getenv("STAKEHOUSE_LOG_BACKUP_COUNT", "5")),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _CONFIGURED_ATTR, True)
    return handlers


def _attach(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    logger.handlers = [handler for handler in logger.handlers if not getattr(handler, _CONFIGURED_ATTR, False)]
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False


def configure_logging(state_dir: Path) -> logging.Logger:
    """Send ``stakehouse`` and library loggers to stdout and the rotating log file as JSON lines.

    Safe to call more than once: previously installed handlers are replaced,
    never duplicated.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(_parse_level(os.getenv("STAKEHOUSE_LOG_LEVEL", "INFO")))

    existing = [handler for handler in logger.handlers if getattr(handler, _CONFIGURED_ATTR, False)]
    for handler in existing:
        handler.close()

    handlers = _build_handlers(state_dir, JSONFormatter())
    _attach(logger, handlers)

    library_level = _parse_level(os.getenv("STAKEHOUSE_LIBRARY_LOG_LEVEL", "WARNING"), logging.WARNING)
    for name in _LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(library_level)
        _attach(library_logger, handlers)

    return logger
