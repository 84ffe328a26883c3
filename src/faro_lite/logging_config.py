"""Logging setup for the command line and collector entry points.

Library code only creates module loggers; handlers are configured here and
only by entry points.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
