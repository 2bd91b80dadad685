# restobot/logging_config.py
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

# Chatty libraries that only matter when debugging gateway or DB calls
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(level: Optional[str] = None) -> None:
    """Route app logs to stdout at LOG_LEVEL (INFO when unset or unknown)."""
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    numeric_level = logging.getLevelName(name)
    if not isinstance(numeric_level, int):
        name, numeric_level = "INFO", logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("restobot").setLevel(numeric_level)

    for lib in _QUIET_LOGGERS:
        logging.getLogger(lib).setLevel(logging.DEBUG if name == "DEBUG" else logging.WARNING)
