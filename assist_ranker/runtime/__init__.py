"""
Runtime configuration loading.
"""

from .config_loader import ConfigLoader, ConfigValidationError, load_config

__all__ = [
    'ConfigLoader',
    'ConfigValidationError',
    'load_config',
]
