#!/usr/bin/env python3
"""
Ranker Model Loader CLI

Loads a ranker model the way a client would: cache first, then the model
URL, pulsing the activity signal until the loader finishes or the timeout
runs out.

Usage:
    python scripts/load_ranker_model.py --config configs/ranker_loader.yaml
    python scripts/load_ranker_model.py --model-path cache/ranker.json \
        --model-url https://example.com/ranker.json --validator json --required-version 3

Exit codes: 0 model loaded, 1 no model available, 2 timed out.
"""

import sys
import argparse
import asyncio
import json
import logging
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from assist_ranker.common import RankerLoaderConfig, load_config, init_logger, format_duration
from assist_ranker.loader import RankerModelLoader, accept_bytes, json_model_validator
from assist_ranker.observability import InMemoryMetricsSink

EXIT_SUCCESS = 0
EXIT_NO_MODEL = 1
EXIT_TIMEOUT = 2


def print_separator(char="═", length=60):
    """Print separator line."""
    print(char * length)


async def run_loader(config, validate, activity_interval, timeout, metrics):
    """
    Run one loader to completion.

    Args:
        config: RankerLoaderConfig
        validate: Validation hook
        activity_interval: Seconds between activity signals
        timeout: Overall time budget in seconds
        metrics: Metrics sink

    Returns:
        LoadResult, or None on timeout
    """
    loop = asyncio.get_running_loop()
    done = loop.create_future()

    def on_model_available(result):
        if not done.done():
            done.set_result(result)

    loader = RankerModelLoader.from_config(config, validate, on_model_available, metrics=metrics)
    with loader:
        deadline = loop.time() + timeout
        while not done.done():
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            try:
                await asyncio.wait_for(asyncio.shield(done), timeout=min(activity_interval, remaining))
            except asyncio.TimeoutError:
                loader.notify_activity()
        return done.result()


def build_config(args) -> RankerLoaderConfig:
    if args.config:
        config = load_config(args.config)
    else:
        config = RankerLoaderConfig()

    if args.model_path is not None:
        config.loader.model_path = args.model_path
    if args.model_url is not None:
        config.loader.model_url = args.model_url
    if args.max_attempts is not None:
        config.backoff.max_attempts = args.max_attempts
    if args.initial_delay is not None:
        config.backoff.initial_delay = args.initial_delay
    return config


def main():
    parser = argparse.ArgumentParser(description="Load a ranker model from cache or network")
    parser.add_argument('--config', type=str, help='YAML config file')
    parser.add_argument('--model-path', type=str, help='Cache location (overrides config)')
    parser.add_argument('--model-url', type=str, help='Download URL (overrides config)')
    parser.add_argument('--max-attempts', type=int, help='Download attempt cap')
    parser.add_argument('--initial-delay', type=float, help='Backoff after the first failure (seconds)')
    parser.add_argument('--validator', choices=['bytes', 'json'], default='bytes',
                        help='Payload validator (default: bytes)')
    parser.add_argument('--required-version', type=int, help='Required model version (json validator)')
    parser.add_argument('--activity-interval', type=float, default=5.0,
                        help='Seconds between activity signals (default: 5)')
    parser.add_argument('--timeout', type=float, default=60.0,
                        help='Give up after this many seconds (default: 60)')
    parser.add_argument('--log-file', type=str, help='Also log to this file')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    init_logger("assist_ranker", args.log_file, logging.DEBUG if args.verbose else logging.INFO)

    config = build_config(args)
    if args.validator == 'json':
        validate = json_model_validator(required_version=args.required_version)
    else:
        validate = accept_bytes

    metrics = InMemoryMetricsSink()
    result = asyncio.run(run_loader(config, validate, args.activity_interval, args.timeout, metrics))

    print_separator()
    print("RANKER MODEL LOADER")
    print_separator()

    if result is None:
        print(f"⏱️  No result within {format_duration(args.timeout)}")
        exit_code = EXIT_TIMEOUT
    elif result.ok:
        print(f"✅ Model loaded from {result.source.value} (attempts: {result.attempts})")
        exit_code = EXIT_SUCCESS
    else:
        print(f"❌ No model available: {result.status.value}")
        if result.last_error:
            print(f"   Last error: {result.last_error.value}")
        exit_code = EXIT_NO_MODEL

    if result is not None:
        print("\nResult:")
        print(json.dumps(result.to_dict(), indent=2))

    print("\nMetrics:")
    print(json.dumps(metrics.summary(), indent=2))
    print_separator()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
