"""Central logging configuration for Pulse Coach.

Application loggers (``pulse.*`` and ``scripts.*``) log at the configured
level; third-party libraries are held at WARNING. Token usage from the
context router and coach is also written to its own file so prompt size can
be audited without the request noise.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from pulse.config import get_settings

_configured = False

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

APP_LOGGERS = ("pulse", "scripts")
TOKEN_LOGGER = "pulse.services.token_utils"
QUIET_LOGGERS = ("httpx", "anthropic", "uvicorn.access")


def _rotating_file(path: Path, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf-8",
        "formatter": "standard",
        "level": level,
    }


def build_logging_config(log_dir: Path, level: str) -> dict:
    """Return the ``dictConfig`` mapping for ``log_dir`` at ``level``."""

    loggers: dict[str, dict] = {name: {"level": level} for name in APP_LOGGERS}
    loggers[TOKEN_LOGGER] = {"level": level, "handlers": ["tokens"]}
    loggers.update({name: {"level": "WARNING"} for name in QUIET_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
            "file": _rotating_file(log_dir / "pulse.log", level),
            "tokens": _rotating_file(log_dir / "token_usage.log", "INFO"),
        },
        "root": {"level": "WARNING", "handlers": ["console", "file"]},
        "loggers": loggers,
    }


def configure_logging() -> None:
    """Configure application logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir = settings.log_dir
        level = settings.log_level
    except ValidationError:
        # Scripts and some tests run without ANTHROPIC_API_KEY.
        log_dir = Path("logs")
        level = "INFO"
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level))
    _configured = True
    logging.getLogger("pulse").debug("Logging configured (level=%s, dir=%s)", level, log_dir)
