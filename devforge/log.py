"""Logging setup shared by the CLI and the desktop app."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from .config import logs_dir

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def configure_logging(level: int = logging.INFO, to_file: bool = True) -> None:
    """Attach a stderr handler and, when possible, a rotating file handler."""
    global _configured
    if _configured:
        return
    logger = logging.getLogger("devforge")
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if to_file:
        try:
            directory = logs_dir()
            directory.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(directory / "devforge.log", maxBytes=512_000, backupCount=3, encoding="utf-8")
        except OSError as exc:
            logger.warning("File logging disabled: %s", exc)
        else:
            handler.setFormatter(formatter)
            logger.addHandler(handler)
    _configured = True
