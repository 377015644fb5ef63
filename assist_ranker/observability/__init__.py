"""
Observability

Structured logging and metrics sinks for the ranker model loader.
"""

from .logging import (
    StructuredLogger,
    log_model_status,
    log_load_timing,
    log_download_attempt,
)
from .metrics import MetricsSink, InMemoryMetricsSink, LoggingMetricsSink

__all__ = [
    'StructuredLogger',
    'log_model_status',
    'log_load_timing',
    'log_download_attempt',
    'MetricsSink',
    'InMemoryMetricsSink',
    'LoggingMetricsSink',
]
