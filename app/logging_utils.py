"""
Structured logging helpers for the herd pipeline.

Events are single JSON lines. Floats are rounded and dates written in ISO
form so that weights, rates and date ranges read the same in every event.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Any

FLOAT_DIGITS = 4


def _jsonable(value: Any) -> Any:
    if isinstance(value, float):
        return round(value, FLOAT_DIGITS)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    return value


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **{key: _jsonable(value) for key, value in fields.items()}}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


@contextmanager
def timed_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> Iterator[dict[str, Any]]:
    """
    Log ``event`` once the block exits, with ``duration_ms`` and ``outcome``
    (``ok`` or the exception class name). The yielded dict collects fields
    known only at the end of the block.

        with timed_event(logger, "herd_import", rows=120) as extra:
            ...
            extra["groups"] = 4
    """

    extra: dict[str, Any] = {}
    started = time.perf_counter()
    outcome = "ok"
    try:
        yield extra
    except Exception as exc:
        outcome = type(exc).__name__
        raise
    finally:
        log_event(
            logger,
            level if outcome == "ok" else logging.WARNING,
            event,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            outcome=outcome,
            **fields,
            **extra,
        )
