"""Logging setup shared by the API and the command-line tools."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Libraries that are chatty at INFO during large uploads.
QUIET_LOGGERS = ("sqlalchemy.engine", "multipart", "python_multipart")


def setup_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    logging.basicConfig(level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(), format=LOG_FORMAT)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
