from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Per-request chatter from the dev server and the HTTP client
NOISY_LOGGERS = ("werkzeug", "urllib3")


def _resolve_level(level: Optional[int]) -> int:
    if level is not None:
        return level
    name = os.getenv("SCROLLSTORY_LOG_LEVEL", "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
        level: Optional[int] = None,
        force_format: Optional[str] = None,
) -> None:
    """
    Configure the root logger for the story app

    Modes:
    - JSON (default) when served, so extra={...} fields stay queryable
    - plain text for local authoring

    Selection Order:
        1) force_format / level arguments if provided
        2) env vars SCROLLSTORY_LOG_FORMAT / SCROLLSTORY_LOG_LEVEL
        3) default = "json" at INFO
    """
    format_mode = (force_format or os.getenv("SCROLLSTORY_LOG_FORMAT", "json")).lower()

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    handler = logging.StreamHandler()
    if format_mode == "plain":
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))

    # Replace any existing handlers to avoid duplicate logs
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))
