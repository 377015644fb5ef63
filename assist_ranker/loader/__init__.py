"""
Ranker Model Loader Package

Cache-first, download-fallback loading of ranker models with bounded
retries.
"""

from .state import LoaderState, ModelStatus, ModelSource, LoadResult
from .errors import RankerLoaderError, ModelValidationError, CacheEnvelopeError
from .backoff import BackoffPolicy
from .envelope import CachedModel, ENVELOPE_FORMAT
from .model_loader import RankerModelLoader, DEFAULT_CACHE_DURATION_SEC
from .validators import accept_bytes, json_model_validator

__all__ = [
    'LoaderState',
    'ModelStatus',
    'ModelSource',
    'LoadResult',
    'RankerLoaderError',
    'ModelValidationError',
    'CacheEnvelopeError',
    'BackoffPolicy',
    'CachedModel',
    'ENVELOPE_FORMAT',
    'RankerModelLoader',
    'DEFAULT_CACHE_DURATION_SEC',
    'accept_bytes',
    'json_model_validator',
]
