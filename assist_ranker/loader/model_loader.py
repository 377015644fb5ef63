"""
Ranker Model Loader

Supplies a validated ranker model, preferring the local cache and falling
back to a download from the model URL. Downloads are bounded by a backoff
policy; client activity is used as the hint that another download attempt
is worthwhile.

Threading:
- The loader is owned by the asyncio event loop it was constructed on.
  Construction, notify_activity(), close() and the completion callback all
  happen on that loop's thread.
- Cache reads, downloads, validation and cache writes run on a background
  executor. Results come back through loop.call_soon_threadsafe and are
  dropped if the loader has been closed or garbage collected meanwhile.
"""

import asyncio
import logging
import os
import threading
import time
import weakref
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional, Tuple

from assist_ranker.fetch.url_fetcher import HttpUrlFetcher, UrlFetcher, is_valid_url
from assist_ranker.loader.backoff import BackoffPolicy
from assist_ranker.loader.errors import CacheEnvelopeError, ModelValidationError
from assist_ranker.loader.state import LoaderState, LoadResult, ModelSource, ModelStatus
from assist_ranker.loader.envelope import CachedModel
from assist_ranker.observability.logging import log_download_attempt
from assist_ranker.observability.metrics import MetricsSink
from assist_ranker.storage.cache_store import CacheStore, FileCacheStore

logger = logging.getLogger(__name__)

ValidateModelCallback = Callable[[bytes], Any]
OnModelAvailableCallback = Callable[[LoadResult], None]

DEFAULT_CACHE_DURATION_SEC = 30 * 24 * 3600  # 30 days


@dataclass(frozen=True)
class _StepResult:
    """Result of one background step, handed back to the owner loop."""
    status: ModelStatus
    model: Any = None
    data: bytes = b""


class _LifetimeToken:
    """Invalidated when the loader is closed; checked before delivery."""

    __slots__ = ("valid",)

    def __init__(self):
        self.valid = True

    def invalidate(self) -> None:
        self.valid = False


# ─────────────────────────────────────────────
# BACKGROUND STEPS
# These run on the executor and must not touch loader state.
# ─────────────────────────────────────────────


def _run_validator(validate: ValidateModelCallback, payload: bytes) -> Tuple[ModelStatus, Any]:
    try:
        model = validate(payload)
    except ModelValidationError as e:
        logger.info(f"Model rejected by validator: {e}")
        # A rejection never counts as success, whatever status it carries
        if e.status is ModelStatus.OK:
            return ModelStatus.VALIDATION_FAILED, None
        return e.status, None
    except Exception:
        logger.exception("Validator raised; treating payload as invalid")
        return ModelStatus.VALIDATION_FAILED, None

    if model is None:
        logger.info("Validator returned no model")
        return ModelStatus.VALIDATION_FAILED, None
    return ModelStatus.OK, model


def _load_from_cache(
    store: CacheStore,
    path: str,
    url: Optional[str],
    validate: ValidateModelCallback,
    now: float,
) -> _StepResult:
    try:
        data = store.read_bytes(path)
    except OSError as e:
        logger.warning(f"Failed to read cached model {path}: {e}")
        return _StepResult(ModelStatus.READ_ERROR)

    if data is None:
        return _StepResult(ModelStatus.NOT_FOUND)

    try:
        cached = CachedModel.parse(data)
    except CacheEnvelopeError as e:
        logger.warning(f"Discarding cached model {path}: {e}")
        return _StepResult(e.status)

    if not cached.matches_source(url):
        logger.info(f"Cached model was fetched from {cached.source_url}, expected {url}")
        return _StepResult(ModelStatus.INCOMPATIBLE)

    if cached.is_expired(now):
        logger.info(f"Cached model {path} has expired")
        return _StepResult(ModelStatus.EXPIRED)

    status, model = _run_validator(validate, cached.payload)
    return _StepResult(status, model)


def _load_from_url(fetcher: UrlFetcher, url: str, validate: ValidateModelCallback) -> _StepResult:
    result = fetcher.fetch(url)
    if not result.success:
        return _StepResult(ModelStatus.DOWNLOAD_FAILED)

    status, model = _run_validator(validate, result.data)
    return _StepResult(status, model, data=result.data)


def _write_to_cache(store: CacheStore, path: str, data: bytes) -> _StepResult:
    try:
        store.write_bytes(path, data)
    except OSError as e:
        logger.warning(f"Failed to write model cache {path}: {e}")
        return _StepResult(ModelStatus.WRITE_ERROR)
    return _StepResult(ModelStatus.OK)


class RankerModelLoader:
    """
    Loads a ranker model from cache, falling back to the network.

    Usage:
        loader = RankerModelLoader(
            validate_model=json_model_validator(),
            on_model_available=handle_result,
            model_path="cache/ranker.model",
            model_url="https://example.com/ranker.model",
            uma_prefix="Translate.Ranker",
        )
        ...
        loader.notify_activity()  # whenever the ranked feature is used
        ...
        loader.close()

    on_model_available is called exactly once with a LoadResult, unless the
    loader is closed first.
    """

    def __init__(
        self,
        validate_model: ValidateModelCallback,
        on_model_available: OnModelAvailableCallback,
        model_path: Optional["os.PathLike[str] | str"] = None,
        model_url: Optional[str] = None,
        uma_prefix: str = "",
        *,
        cache_store: Optional[CacheStore] = None,
        url_fetcher: Optional[UrlFetcher] = None,
        fetch_timeout: float = HttpUrlFetcher.DEFAULT_TIMEOUT,
        user_agent: str = HttpUrlFetcher.DEFAULT_USER_AGENT,
        metrics: Optional[MetricsSink] = None,
        backoff: Optional[BackoffPolicy] = None,
        cache_duration_sec: int = DEFAULT_CACHE_DURATION_SEC,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
        executor: Optional[Executor] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize the loader and start loading.

        Args:
            validate_model: Turns payload bytes into a model; raises
                ModelValidationError to reject. May run on any thread.
            on_model_available: Receives the LoadResult on the owner loop
            model_path: Cache location; empty or None disables the cache
            model_url: Download URL; must be an absolute http(s) URL
            uma_prefix: Prefix for metric names
            cache_store: Cache backend (FileCacheStore by default)
            url_fetcher: Downloader; an HttpUrlFetcher owned by the loader by default
            fetch_timeout: Request timeout for the default fetcher
            user_agent: User-Agent header for the default fetcher
            metrics: Optional metrics sink
            backoff: Retry policy (BackoffPolicy defaults)
            cache_duration_sec: Lifetime stamped on freshly downloaded models
            clock: Monotonic clock used for backoff and timings
            wall_clock: Epoch clock used for cache expiry
            executor: Background executor; a private single worker by default
            loop: Owner event loop; the running loop by default
        """
        self._loop = loop or asyncio.get_running_loop()
        self._owner_thread = threading.get_ident()

        self._validate_model = validate_model
        self._on_model_available = on_model_available

        self._model_path = os.fspath(model_path) if model_path else None
        self._model_url = model_url if is_valid_url(model_url) else None
        if model_url and self._model_url is None:
            logger.warning(f"Ignoring invalid model URL: {model_url!r}")

        self._uma_prefix = uma_prefix
        self._cache_store = cache_store
        self._url_fetcher = url_fetcher
        self._fetcher_finalizer: Optional[weakref.finalize] = None
        if url_fetcher is None and self._model_url is not None:
            fetcher = HttpUrlFetcher(timeout=fetch_timeout, user_agent=user_agent)
            self._url_fetcher = fetcher
            self._fetcher_finalizer = weakref.finalize(self, fetcher.close)
        self._metrics = metrics
        self._backoff = backoff or BackoffPolicy()
        self._cache_duration_sec = cache_duration_sec
        self._clock = clock
        self._wall_clock = wall_clock

        self._executor = executor
        self._executor_finalizer: Optional[weakref.finalize] = None

        self._state = LoaderState.NOT_STARTED
        self._attempts = 0
        self._last_error: Optional[ModelStatus] = None
        self._next_earliest_download_time = self._clock()
        self._load_start_time = self._next_earliest_download_time
        self._token = _LifetimeToken()
        self._result_delivered = False
        self._closed = False

        self._start()

    @classmethod
    def from_config(
        cls,
        config,
        validate_model: ValidateModelCallback,
        on_model_available: OnModelAvailableCallback,
        **kwargs,
    ) -> "RankerModelLoader":
        """Build a loader from a RankerLoaderConfig.

        Keyword arguments override collaborators (cache_store, metrics, ...).
        """
        kwargs.setdefault("backoff", config.backoff.to_policy())
        kwargs.setdefault("cache_duration_sec", config.loader.cache_duration_sec)
        kwargs.setdefault("fetch_timeout", config.fetch.timeout)
        kwargs.setdefault("user_agent", config.fetch.user_agent)
        return cls(
            validate_model,
            on_model_available,
            model_path=config.loader.model_path,
            model_url=config.loader.model_url,
            uma_prefix=config.loader.uma_prefix,
            **kwargs,
        )

    # ─────────────────────────────────────────────
    # PUBLIC API
    # ─────────────────────────────────────────────

    @property
    def state(self) -> LoaderState:
        return self._state

    @property
    def attempts(self) -> int:
        """Network attempts started so far."""
        return self._attempts

    @property
    def next_earliest_download_time(self) -> float:
        return self._next_earliest_download_time

    def notify_activity(self) -> None:
        """
        Signal that the ranked feature is in use.

        Engagement is used as a proxy for network availability: while the
        loader is idle this starts another download, subject to the backoff
        gate and the attempt cap. In every other state it does nothing.
        """
        self._assert_on_owner_sequence()
        if self._closed:
            return

        if self._state is LoaderState.IDLE:
            self._start_load_from_url()

    def close(self) -> None:
        """
        Abandon the loader.

        Outstanding background work is detached: its result is dropped and
        the completion callback will not be called after this returns.
        An executor or fetcher the loader created itself is shut down.
        """
        self._assert_on_owner_sequence()
        if self._closed:
            return
        self._closed = True

        if self._state is not LoaderState.FINISHED:
            logger.info(f"Model loading abandoned in state {self._state.value}")
            self._report_status(ModelStatus.MODEL_LOADING_ABANDONED)

        self._token.invalidate()
        if self._executor_finalizer is not None:
            self._executor_finalizer()
        if self._fetcher_finalizer is not None:
            self._fetcher_finalizer()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ─────────────────────────────────────────────
    # STATE TRANSITIONS
    # ─────────────────────────────────────────────

    def _start(self) -> None:
        if self._model_path:
            self._start_load_from_cache()
        elif self._model_url:
            self._start_load_from_url()
        else:
            logger.warning("No model path or model URL configured; no ranker model available")
            self._report_status(ModelStatus.NO_SOURCES)
            self._finish(LoadResult(status=ModelStatus.NO_SOURCES))

    def _start_load_from_cache(self) -> None:
        assert self._state is LoaderState.NOT_STARTED
        self._set_state(LoaderState.LOADING_FROM_CACHE)
        self._load_start_time = self._clock()

        if self._cache_store is None:
            self._cache_store = FileCacheStore()

        task = partial(
            _load_from_cache,
            self._cache_store,
            self._model_path,
            self._model_url,
            self._validate_model,
            self._wall_clock(),
        )
        self._post_background(task, RankerModelLoader._on_cache_loaded, ModelStatus.READ_ERROR)

    def _on_cache_loaded(self, result: _StepResult) -> None:
        assert self._state is LoaderState.LOADING_FROM_CACHE
        self._record_duration("Timer.ReadFromCache", self._clock() - self._load_start_time)
        self._report_status(result.status)

        if result.status is ModelStatus.OK:
            logger.info(f"Loaded ranker model from cache: {self._model_path}")
            self._finish(LoadResult(
                status=ModelStatus.OK,
                model=result.model,
                source=ModelSource.CACHE,
            ))
            return

        logger.info(f"Cached model unusable ({result.status.value})")
        self._last_error = result.status
        self._set_state(LoaderState.IDLE)

        if self._model_url:
            self._start_load_from_url()
        else:
            self._finish(LoadResult(status=result.status, last_error=result.status))

    def _start_load_from_url(self) -> None:
        assert self._state in (LoaderState.NOT_STARTED, LoaderState.IDLE)

        if not self._model_url:
            self._finish(LoadResult(status=self._last_error or ModelStatus.NO_SOURCES,
                                    last_error=self._last_error))
            return

        if self._backoff.exhausted(self._attempts):
            self._finish_exhausted()
            return

        now = self._clock()
        if now < self._next_earliest_download_time:
            logger.debug(
                f"Download throttled for another "
                f"{self._next_earliest_download_time - now:.1f}s"
            )
            return

        self._attempts += 1
        self._set_state(LoaderState.LOADING_FROM_NETWORK)
        self._load_start_time = now

        task = partial(_load_from_url, self._url_fetcher, self._model_url, self._validate_model)
        self._post_background(task, RankerModelLoader._on_url_fetched, ModelStatus.DOWNLOAD_FAILED)

    def _on_url_fetched(self, result: _StepResult) -> None:
        assert self._state is LoaderState.LOADING_FROM_NETWORK
        now = self._clock()
        self._record_duration("Timer.DownloadFromURL", now - self._load_start_time)
        self._report_status(result.status)
        label = self._metric_name("Model.Download")

        if result.status is ModelStatus.OK:
            log_download_attempt(label, self._attempts, self._backoff.max_attempts, True)
            self._save_to_cache(result.data)
            self._finish(LoadResult(
                status=ModelStatus.OK,
                model=result.model,
                source=ModelSource.NETWORK,
                attempts=self._attempts,
            ))
            return

        self._last_error = result.status
        self._next_earliest_download_time = max(
            self._next_earliest_download_time,
            self._backoff.next_download_time(self._attempts, now),
        )
        self._set_state(LoaderState.IDLE)

        if self._backoff.exhausted(self._attempts):
            log_download_attempt(label, self._attempts, self._backoff.max_attempts, False)
            self._finish_exhausted()
            return

        log_download_attempt(
            label,
            self._attempts,
            self._backoff.max_attempts,
            False,
            next_attempt_in=self._next_earliest_download_time - now,
        )

    def _save_to_cache(self, payload: bytes) -> None:
        """Persist a fresh download. Best effort: failures only get logged."""
        if not self._model_path:
            return

        if self._cache_store is None:
            self._cache_store = FileCacheStore()

        envelope = CachedModel(
            payload=payload,
            source_url=self._model_url,
            last_modified_sec=int(self._wall_clock()),
            cache_duration_sec=self._cache_duration_sec,
        )
        started = self._clock()
        task = partial(_write_to_cache, self._cache_store, self._model_path, envelope.serialize())
        reply = partial(RankerModelLoader._on_cache_written, started=started)
        self._post_background(task, reply, ModelStatus.WRITE_ERROR)

    def _on_cache_written(self, result: _StepResult, started: float) -> None:
        self._record_duration("Timer.WriteToCache", self._clock() - started)
        if result.status is not ModelStatus.OK:
            self._report_status(result.status)
        else:
            logger.info(f"Cached ranker model at {self._model_path}")

    def _finish_exhausted(self) -> None:
        logger.warning(
            f"Giving up on model download after {self._attempts} attempt(s); "
            f"last error: {self._last_error.value if self._last_error else 'none'}"
        )
        self._report_status(ModelStatus.ATTEMPTS_EXHAUSTED)
        self._finish(LoadResult(
            status=ModelStatus.ATTEMPTS_EXHAUSTED,
            attempts=self._attempts,
            last_error=self._last_error,
        ))

    def _finish(self, result: LoadResult) -> None:
        self._set_state(LoaderState.FINISHED)
        if self._metrics is not None:
            self._metrics.record_count(self._metric_name("Model.DownloadAttempts"), self._attempts)
        # Never call back synchronously from inside a loader method
        self._loop.call_soon(self._deliver_result, self._token, result)

    def _deliver_result(self, token: _LifetimeToken, result: LoadResult) -> None:
        if not token.valid or self._result_delivered:
            return
        self._result_delivered = True
        self._on_model_available(result)

    # ─────────────────────────────────────────────
    # HELPERS
    # ─────────────────────────────────────────────

    def _post_background(
        self,
        task: Callable[[], _StepResult],
        reply: Callable[["RankerModelLoader", _StepResult], None],
        failure_status: ModelStatus,
    ) -> None:
        """Run `task` on the executor and hand its result to `reply` on the owner loop.

        Neither callable may hold a strong reference to the loader; the
        result is only delivered while the loader is alive and not closed.
        """
        token = self._token
        loop = self._loop
        loader_ref = weakref.ref(self)

        def deliver(result: _StepResult) -> None:
            loader = loader_ref()
            if loader is None or not token.valid:
                logger.debug("Dropping background result for a closed loader")
                return
            reply(loader, result)

        def run() -> None:
            try:
                result = task()
            except Exception:
                logger.exception("Background model loader task failed")
                result = _StepResult(failure_status)

            if not token.valid:
                return
            try:
                loop.call_soon_threadsafe(deliver, result)
            except RuntimeError:
                logger.debug("Owner event loop is closed; dropping background result")

        self._get_executor().submit(run)

    def _get_executor(self) -> Executor:
        if self._executor is None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ranker-model-loader")
            self._executor = executor
            self._executor_finalizer = weakref.finalize(self, executor.shutdown, wait=False)
        return self._executor

    def _set_state(self, state: LoaderState) -> None:
        logger.debug(f"Loader state {self._state.value} -> {state.value}")
        self._state = state

    def _metric_name(self, name: str) -> str:
        return f"{self._uma_prefix}.{name}" if self._uma_prefix else name

    def _report_status(self, status: ModelStatus) -> ModelStatus:
        if self._metrics is not None:
            self._metrics.record_status(self._metric_name("Model.Status"), status.value)
        return status

    def _record_duration(self, name: str, seconds: float) -> None:
        if self._metrics is not None:
            self._metrics.record_duration(self._metric_name(name), seconds)

    def _assert_on_owner_sequence(self) -> None:
        assert threading.get_ident() == self._owner_thread, (
            "RankerModelLoader must be used on the thread that constructed it"
        )
