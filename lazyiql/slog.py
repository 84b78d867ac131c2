from __future__ import annotations
import json
import logging
import os
from typing import Any

_LOGGER_NAME = "lazyiql"
_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logger = logging.getLogger(_LOGGER_NAME)
if not logger.handlers:
    logger.setLevel(getattr(logging, _LEVEL, logging.INFO))
    _handler = logging.StreamHandler()
    # messages are already JSON
    _handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(_handler)
    logger.propagate = True  # lets pytest caplog see records


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one JSON line: {"event": ..., **fields}."""
    if not logger.isEnabledFor(level):
        return
    rec = {"event": event}
    rec.update(fields)
    logger.log(level, json.dumps(rec, ensure_ascii=False, default=str))
