"""
Loader Metrics

Fire-and-forget metrics for model loading. The loader works identically
with or without a sink; sinks are only ever called on the owner sequence.
"""

from collections import defaultdict
from typing import Dict, List, Protocol

from .logging import log_model_status, log_load_timing, StructuredLogger


class MetricsSink(Protocol):
    """Interface for loader metrics."""

    def record_status(self, name: str, status: str) -> None:
        ...

    def record_duration(self, name: str, seconds: float) -> None:
        ...

    def record_count(self, name: str, value: int) -> None:
        ...


class InMemoryMetricsSink:
    """Keeps every recorded sample; used by the CLI summary and tests."""

    def __init__(self):
        self.statuses: Dict[str, List[str]] = defaultdict(list)
        self.durations: Dict[str, List[float]] = defaultdict(list)
        self.counts: Dict[str, List[int]] = defaultdict(list)

    def record_status(self, name: str, status: str) -> None:
        self.statuses[name].append(status)

    def record_duration(self, name: str, seconds: float) -> None:
        self.durations[name].append(seconds)

    def record_count(self, name: str, value: int) -> None:
        self.counts[name].append(value)

    def summary(self) -> Dict[str, dict]:
        return {
            "statuses": dict(self.statuses),
            "durations": {k: [round(v, 6) for v in vals] for k, vals in self.durations.items()},
            "counts": dict(self.counts),
        }


class LoggingMetricsSink:
    """Routes metrics into structured log events."""

    def record_status(self, name: str, status: str) -> None:
        log_model_status(name, status)

    def record_duration(self, name: str, seconds: float) -> None:
        log_load_timing(name, seconds * 1000.0)

    def record_count(self, name: str, value: int) -> None:
        StructuredLogger.log_structured("count", {"label": name, "value": value})
