"""Tests for structured logging and metrics sinks"""

import json
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from assist_ranker.common.utils import format_duration, init_logger
from assist_ranker.observability import (
    InMemoryMetricsSink,
    LoggingMetricsSink,
    StructuredLogger,
    log_download_attempt,
)

STRUCTURED_LOGGER = "assist_ranker.observability.logging"


def structured_events(caplog):
    return [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.name == STRUCTURED_LOGGER
    ]


def test_log_structured_emits_json(caplog):
    with caplog.at_level(logging.DEBUG, logger=STRUCTURED_LOGGER):
        StructuredLogger.log_structured("custom", {"label": "x", "value": 1})

    events = structured_events(caplog)
    assert events[0]["event_type"] == "custom"
    assert events[0]["value"] == 1
    assert "timestamp" in events[0]


def test_download_attempt_levels(caplog):
    with caplog.at_level(logging.DEBUG, logger=STRUCTURED_LOGGER):
        log_download_attempt("P.Model.Download", 1, 3, False, next_attempt_in=180.0)
        log_download_attempt("P.Model.Download", 2, 3, True)

    failed, succeeded = [r for r in caplog.records if r.name == STRUCTURED_LOGGER]
    assert failed.levelno == logging.WARNING
    assert json.loads(failed.getMessage())["next_attempt_in"] == 180.0
    assert succeeded.levelno == logging.INFO


def test_logging_metrics_sink(caplog):
    sink = LoggingMetricsSink()

    with caplog.at_level(logging.DEBUG, logger=STRUCTURED_LOGGER):
        sink.record_status("P.Model.Status", "ok")
        sink.record_duration("P.Timer.ReadFromCache", 0.25)
        sink.record_count("P.Model.DownloadAttempts", 2)

    events = structured_events(caplog)
    assert [e["event_type"] for e in events] == ["model_status", "load_timing", "count"]
    assert events[1]["duration_ms"] == 250.0


def test_in_memory_metrics_summary():
    sink = InMemoryMetricsSink()
    sink.record_status("P.Model.Status", "not_found")
    sink.record_status("P.Model.Status", "ok")
    sink.record_duration("P.Timer.DownloadFromURL", 1.5)
    sink.record_count("P.Model.DownloadAttempts", 1)

    summary = sink.summary()
    assert summary["statuses"] == {"P.Model.Status": ["not_found", "ok"]}
    assert summary["durations"] == {"P.Timer.DownloadFromURL": [1.5]}
    assert summary["counts"] == {"P.Model.DownloadAttempts": [1]}


def test_init_logger_with_file(tmp_path):
    log_file = tmp_path / "logs" / "loader.log"
    logger = init_logger("assist_ranker.test", str(log_file))

    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert "hello" in log_file.read_text()
    assert len(logger.handlers) == 2


def test_format_duration():
    assert format_duration(3725) == "01:02:05"
