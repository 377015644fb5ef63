"""Typed configuration for the ranker model loader"""

import yaml
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional
from pathlib import Path

from assist_ranker.fetch.url_fetcher import HttpUrlFetcher
from assist_ranker.loader.backoff import BackoffPolicy
from assist_ranker.loader.model_loader import DEFAULT_CACHE_DURATION_SEC
from assist_ranker.runtime.config_loader import ConfigLoader


@dataclass
class LoaderConfig:
    """Model sources and metric labelling"""
    model_path: Optional[str] = None
    model_url: Optional[str] = None
    uma_prefix: str = "Ranker"
    cache_duration_sec: int = DEFAULT_CACHE_DURATION_SEC


@dataclass
class BackoffConfig:
    """Download retry policy"""
    max_attempts: int = BackoffPolicy.DEFAULT_MAX_ATTEMPTS
    initial_delay: float = BackoffPolicy.DEFAULT_INITIAL_DELAY
    multiplier: float = BackoffPolicy.DEFAULT_MULTIPLIER
    max_delay: float = BackoffPolicy.DEFAULT_MAX_DELAY

    def to_policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            multiplier=self.multiplier,
            max_delay=self.max_delay,
        )


@dataclass
class FetchConfig:
    """HTTP fetcher settings"""
    timeout: float = HttpUrlFetcher.DEFAULT_TIMEOUT
    user_agent: str = HttpUrlFetcher.DEFAULT_USER_AGENT


@dataclass
class RankerLoaderConfig:
    """Main configuration container"""
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    backoff: BackoffConfig = field(default_factory=BackoffConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "RankerLoaderConfig":
        return cls(
            loader=LoaderConfig(**(config_dict.get('loader') or {})),
            backoff=BackoffConfig(**(config_dict.get('backoff') or {})),
            fetch=FetchConfig(**(config_dict.get('fetch') or {})),
        )


def load_config(config_path: str, apply_env: bool = True) -> RankerLoaderConfig:
    """Load configuration from YAML file (with env overrides)"""
    config_dict = ConfigLoader.load_config(config_path, apply_env=apply_env)
    return RankerLoaderConfig.from_dict(config_dict)


def save_config(config: RankerLoaderConfig, path: str):
    """Save configuration to YAML file"""
    config_dict = {
        'loader': asdict(config.loader),
        'backoff': asdict(config.backoff),
        'fetch': asdict(config.fetch),
    }

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False)
