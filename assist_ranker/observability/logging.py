"""
Structured Logging

JSON log events for model loading: per-step status, load timings and
download attempts.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional


logger = logging.getLogger(__name__)


class StructuredLogger:
    """Structured logger for model loader events."""

    @staticmethod
    def log_structured(
        event_type: str,
        data: Dict[str, Any],
        level: int = logging.INFO
    ) -> None:
        """Log structured event.

        Args:
            event_type: Type of event (model_status, load_timing, etc.)
            data: Event data dictionary
            level: Logging level
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            **data
        }

        logger.log(level, json.dumps(log_entry, default=str))


def log_model_status(
    label: str,
    status: str,
    source: Optional[str] = None,
) -> None:
    """Log a load step outcome.

    Args:
        label: Metric label (prefix + name)
        status: ModelStatus value
        source: "cache" or "network" when known
    """
    data = {"label": label, "status": status}

    if source is not None:
        data["source"] = source

    level = logging.INFO if status == "ok" else logging.WARNING
    StructuredLogger.log_structured("model_status", data, level)


def log_load_timing(label: str, duration_ms: float) -> None:
    """Log the duration of a cache read, download or cache write."""
    StructuredLogger.log_structured(
        "load_timing",
        {"label": label, "duration_ms": round(duration_ms, 3)},
        logging.DEBUG,
    )


def log_download_attempt(
    label: str,
    attempt: int,
    max_attempts: int,
    success: bool,
    next_attempt_in: Optional[float] = None
) -> None:
    """Log the outcome of one network attempt.

    Args:
        label: Metric label
        attempt: 1-based attempt number
        max_attempts: Attempt cap
        success: Whether the download produced a valid model
        next_attempt_in: Seconds until the next attempt is allowed
    """
    data = {
        "label": label,
        "attempt": attempt,
        "max_attempts": max_attempts,
        "success": success,
    }

    if next_attempt_in is not None:
        data["next_attempt_in"] = next_attempt_in

    StructuredLogger.log_structured(
        "download_attempt", data, logging.INFO if success else logging.WARNING
    )
