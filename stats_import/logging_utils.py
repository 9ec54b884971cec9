"""
Structured logging helpers for import workflows.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    Enum members and datetimes are rendered through ``str``.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=_json_default, sort_keys=True))


def _json_default(value: Any) -> Any:
    enum_value = getattr(value, "value", None)
    if isinstance(enum_value, (str, int)):
        return enum_value
    return str(value)
