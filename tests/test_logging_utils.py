from __future__ import annotations

import json
import logging
from datetime import date

import pytest

from app.logging_utils import log_event, timed_event

LOGGER_NAME = "tests.logging_utils"


def _payloads(caplog) -> list[dict]:
    return [json.loads(record.getMessage()) for record in caplog.records]


def test_floats_are_rounded_and_dates_iso(caplog) -> None:
    logger = logging.getLogger(LOGGER_NAME)

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        log_event(
            logger,
            logging.INFO,
            "herd_import_started",
            rate=1.234567,
            today=date(2024, 3, 11),
            rates={"G1": 0.333333, "G2": None},
            weights=(412.123456, 460.0),
        )

    assert _payloads(caplog) == [
        {
            "event": "herd_import_started",
            "rate": 1.2346,
            "today": "2024-03-11",
            "rates": {"G1": 0.3333, "G2": None},
            "weights": [412.1235, 460.0],
        }
    ]


def test_timed_event_reports_duration_and_extra_fields(caplog) -> None:
    logger = logging.getLogger(LOGGER_NAME)

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        with timed_event(logger, "herd_import", rows=3) as extra:
            extra["groups"] = 2

    (record,) = caplog.records
    payload = json.loads(record.getMessage())
    assert record.levelno == logging.INFO
    assert payload["event"] == "herd_import"
    assert payload["outcome"] == "ok"
    assert payload["rows"] == 3
    assert payload["groups"] == 2
    assert payload["duration_ms"] >= 0


def test_timed_event_logs_failure_and_reraises(caplog) -> None:
    logger = logging.getLogger(LOGGER_NAME)

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        with pytest.raises(ValueError, match="bad row"):
            with timed_event(logger, "herd_import"):
                raise ValueError("bad row")

    (record,) = caplog.records
    assert record.levelno == logging.WARNING
    assert json.loads(record.getMessage())["outcome"] == "ValueError"


def test_timed_event_respects_level(caplog) -> None:
    logger = logging.getLogger(LOGGER_NAME)

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        with timed_event(logger, "quiet", level=logging.DEBUG):
            pass

    assert caplog.records == []
