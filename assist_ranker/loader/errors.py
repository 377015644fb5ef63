"""
Loader Exceptions

Recoverable failures are raised inside the background steps and turned into
ModelStatus codes by the loader; none of them cross the loader boundary.
"""

from dataclasses import dataclass

from assist_ranker.loader.state import ModelStatus


class RankerLoaderError(Exception):
    """Base class for ranker loader errors."""
    pass


@dataclass
class ModelValidationError(RankerLoaderError):
    """Raised by a validator to reject a payload.

    Attributes:
        reason: Human readable rejection reason
        status: Status recorded for the rejection (VALIDATION_FAILED,
            PARSE_ERROR, INCOMPATIBLE or EXPIRED)
    """
    reason: str
    status: ModelStatus = ModelStatus.VALIDATION_FAILED

    def __str__(self):
        return f"{self.status.value}: {self.reason}"


@dataclass
class CacheEnvelopeError(RankerLoaderError):
    """Raised when a cached entry cannot be decoded."""
    reason: str
    status: ModelStatus = ModelStatus.PARSE_ERROR

    def __str__(self):
        return f"{self.status.value}: {self.reason}"
