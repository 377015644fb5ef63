"""
Config Loader

Loads loader configuration from YAML with environment variable overrides.
Validates required keys before the loader is built.
"""

import os
import logging
from pathlib import Path
from typing import Dict, Any, List
import yaml

from assist_ranker.loader.backoff import BackoffPolicy


logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


class ConfigLoader:
    """Load and validate configuration with environment overrides.

    Priority (highest to lowest):
    1. Environment variables
    2. YAML file
    3. Defaults
    """

    # Required top-level keys
    REQUIRED_KEYS = [
        'loader',
    ]

    # Required nested keys
    REQUIRED_NESTED = {
        'loader': ['uma_prefix'],
    }

    # Environment variable mappings
    ENV_MAPPINGS = {
        'RANKER_MODEL_PATH': ('loader', 'model_path'),
        'RANKER_MODEL_URL': ('loader', 'model_url'),
        'RANKER_UMA_PREFIX': ('loader', 'uma_prefix'),
        'RANKER_CACHE_DURATION_SEC': ('loader', 'cache_duration_sec'),
        'RANKER_MAX_ATTEMPTS': ('backoff', 'max_attempts'),
        'RANKER_INITIAL_RETRY_DELAY': ('backoff', 'initial_delay'),
        'RANKER_MAX_RETRY_DELAY': ('backoff', 'max_delay'),
        'RANKER_FETCH_TIMEOUT': ('fetch', 'timeout'),
    }

    INT_KEYS = {'cache_duration_sec', 'max_attempts'}
    FLOAT_KEYS = {'initial_delay', 'max_delay', 'timeout'}

    @staticmethod
    def load_yaml(config_path: str) -> Dict[str, Any]:
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(config_file, 'r') as f:
                config = yaml.safe_load(f) or {}

            logger.info(f"Loaded config from: {config_path}")
            return config

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise

    @staticmethod
    def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to config.

        Args:
            config: Base configuration dictionary

        Returns:
            Configuration with environment overrides applied

        Raises:
            ConfigValidationError: If a numeric override cannot be parsed
        """
        overrides_applied = []

        for env_var, (section, key) in ConfigLoader.ENV_MAPPINGS.items():
            env_value = os.environ.get(env_var)

            if env_value is not None:
                # Ensure section exists
                if not isinstance(config.get(section), dict):
                    config[section] = {}

                try:
                    if key in ConfigLoader.INT_KEYS:
                        env_value = int(env_value)
                    elif key in ConfigLoader.FLOAT_KEYS:
                        env_value = float(env_value)
                except ValueError:
                    raise ConfigValidationError(f"{env_var} must be numeric, got {env_value!r}")

                config[section][key] = env_value
                overrides_applied.append(f"{env_var} -> {section}.{key}")

        if overrides_applied:
            logger.info(f"Applied {len(overrides_applied)} environment overrides")
            for override in overrides_applied:
                logger.debug(f"  {override}")

        return config

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> List[str]:
        """Validate configuration has required keys and sane values.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Check required top-level keys
        for key in ConfigLoader.REQUIRED_KEYS:
            if key not in config:
                errors.append(f"Missing required top-level key: {key}")

        # Check required nested keys
        for section, required_keys in ConfigLoader.REQUIRED_NESTED.items():
            if section not in config:
                continue  # Already reported above

            section_config = config[section]
            if not isinstance(section_config, dict):
                errors.append(f"Section '{section}' must be a dictionary")
                continue

            for key in required_keys:
                if key not in section_config:
                    errors.append(f"Missing required key: {section}.{key}")

        backoff = config.get('backoff', {})
        if backoff is None:
            backoff = {}
        if not isinstance(backoff, dict):
            errors.append("Section 'backoff' must be a dictionary")
        else:
            errors.extend(ConfigLoader.validate_backoff(backoff))

        return errors

    @staticmethod
    def validate_backoff(backoff: Dict[str, Any]) -> List[str]:
        """Check a backoff section against the rules BackoffPolicy enforces.

        Missing keys take the policy defaults, so an override that conflicts
        with a default (initial_delay above the default max_delay) is caught.

        Args:
            backoff: The 'backoff' section of the configuration

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        values = {
            'max_attempts': BackoffPolicy.DEFAULT_MAX_ATTEMPTS,
            'initial_delay': BackoffPolicy.DEFAULT_INITIAL_DELAY,
            'multiplier': BackoffPolicy.DEFAULT_MULTIPLIER,
            'max_delay': BackoffPolicy.DEFAULT_MAX_DELAY,
        }

        for key in backoff:
            if key not in values:
                errors.append(f"Unknown key: backoff.{key}")

        for key in list(values):
            if key not in backoff:
                continue
            value = backoff[key]
            expected = int if key == 'max_attempts' else (int, float)
            # bool is an int subclass; `max_attempts: yes` is not a count
            if isinstance(value, bool) or not isinstance(value, expected):
                kind = "an integer" if key == 'max_attempts' else "a number"
                errors.append(f"backoff.{key} must be {kind}, got {value!r}")
                values[key] = None
            else:
                values[key] = value

        max_attempts = values['max_attempts']
        initial_delay = values['initial_delay']
        multiplier = values['multiplier']
        max_delay = values['max_delay']

        if max_attempts is not None and max_attempts < 1:
            errors.append("backoff.max_attempts must be >= 1")
        if initial_delay is not None and initial_delay < 0:
            errors.append("backoff.initial_delay must be >= 0")
        if multiplier is not None and multiplier < 1.0:
            errors.append("backoff.multiplier must be >= 1.0")
        if initial_delay is not None and max_delay is not None and max_delay < initial_delay:
            errors.append(
                f"backoff.max_delay ({max_delay}) must be >= backoff.initial_delay ({initial_delay})"
            )

        return errors

    @staticmethod
    def load_config(
        config_path: str,
        apply_env: bool = True,
        validate: bool = True
    ) -> Dict[str, Any]:
        """Load, override, and validate configuration.

        Args:
            config_path: Path to YAML config file
            apply_env: Apply environment variable overrides (default: True)
            validate: Validate required keys (default: True)

        Returns:
            Validated configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigValidationError: If validation fails
        """
        config = ConfigLoader.load_yaml(config_path)

        if apply_env:
            config = ConfigLoader.apply_env_overrides(config)

        if validate:
            errors = ConfigLoader.validate_config(config)
            if errors:
                error_msg = "Config validation failed:\n  " + "\n  ".join(errors)
                logger.error(error_msg)
                raise ConfigValidationError(error_msg)

            logger.info("Config validation passed")

        return config


def load_config(
    config_path: str,
    apply_env: bool = True,
    validate: bool = True
) -> Dict[str, Any]:
    """Convenience function to load configuration."""
    return ConfigLoader.load_config(config_path, apply_env, validate)
