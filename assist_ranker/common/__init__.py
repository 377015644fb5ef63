"""Common configuration and utilities for the ranker model loader"""

from .config import (
    RankerLoaderConfig,
    LoaderConfig,
    BackoffConfig,
    FetchConfig,
    load_config,
    save_config,
)
from .utils import init_logger, format_duration

__all__ = [
    'RankerLoaderConfig',
    'LoaderConfig',
    'BackoffConfig',
    'FetchConfig',
    'load_config',
    'save_config',
    'init_logger',
    'format_duration',
]
