"""
Loader State & Outcome Types

Enumerations and result containers shared by the ranker model loader,
its metrics and its callers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class LoaderState(Enum):
    """Lifecycle of a ranker model loader.

    NOT_STARTED -> LOADING_FROM_CACHE | LOADING_FROM_NETWORK | FINISHED
    LOADING_FROM_CACHE -> FINISHED | IDLE
    IDLE <-> LOADING_FROM_NETWORK (bounded by the attempt cap)
    IDLE -> FINISHED
    """
    NOT_STARTED = "not_started"
    LOADING_FROM_CACHE = "loading_from_cache"
    IDLE = "idle"
    LOADING_FROM_NETWORK = "loading_from_network"
    FINISHED = "finished"


class ModelStatus(Enum):
    """Outcome codes for a single load step or for the whole load."""
    OK = "ok"
    NOT_FOUND = "not_found"
    READ_ERROR = "read_error"
    WRITE_ERROR = "write_error"
    PARSE_ERROR = "parse_error"
    INCOMPATIBLE = "incompatible"
    EXPIRED = "expired"
    VALIDATION_FAILED = "validation_failed"
    DOWNLOAD_FAILED = "download_failed"
    NO_SOURCES = "no_sources"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    MODEL_LOADING_ABANDONED = "model_loading_abandoned"


class ModelSource(Enum):
    """Where a delivered model came from."""
    CACHE = "cache"
    NETWORK = "network"


@dataclass(frozen=True)
class LoadResult:
    """Terminal outcome handed to the completion callback."""
    status: ModelStatus
    model: Any = None
    source: Optional[ModelSource] = None
    attempts: int = 0
    last_error: Optional[ModelStatus] = None

    @property
    def ok(self) -> bool:
        return self.status is ModelStatus.OK

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "source": self.source.value if self.source else None,
            "attempts": self.attempts,
            "last_error": self.last_error.value if self.last_error else None,
            "has_model": self.model is not None,
        }
