"""
Structured JSON log lines for the categorization pipeline.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def _json_default(value: Any) -> str:
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return str(value)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    domain: str | None = None,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    `event` and, when given, `domain` lead the payload; remaining fields
    follow in key order. Exceptions render as `Type: message`.
    """

    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    if domain is not None:
        payload["domain"] = domain
    payload.update(sorted(fields.items()))
    logger.log(level, json.dumps(payload, default=_json_default))
