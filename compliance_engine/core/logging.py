from __future__ import annotations

import logging
import sys
from typing import Optional, Union

# supabase-py talks through httpx/hpack; their per-request DEBUG/INFO lines drown the engine logs
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    """Stdout logging shared by the API process and the alert worker."""
    if level is None:
        from compliance_engine.core.config import settings
        level = settings.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if root.handlers:
        return  # uvicorn --reload / repeated startup

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    root.addHandler(handler)
