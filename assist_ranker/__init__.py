"""
assist_ranker - cache-first ranker model loading

Loads a validated ranker model from a local cache, falling back to a
bounded, backoff-gated download.
"""

__version__ = "0.1.0"

from .loader import (
    RankerModelLoader,
    LoaderState,
    ModelStatus,
    ModelSource,
    LoadResult,
    BackoffPolicy,
    ModelValidationError,
    accept_bytes,
    json_model_validator,
)

__all__ = [
    'RankerModelLoader',
    'LoaderState',
    'ModelStatus',
    'ModelSource',
    'LoadResult',
    'BackoffPolicy',
    'ModelValidationError',
    'accept_bytes',
    'json_model_validator',
]
