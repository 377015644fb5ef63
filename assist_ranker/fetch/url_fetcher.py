"""
Model URL Fetcher

Downloads model payloads over HTTP(S) with requests. Called from the
loader's background worker; a failed fetch is reported as
FetchResult(success=False) and never raises.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one download."""
    success: bool
    data: bytes = b""


class UrlFetcher(Protocol):
    """Interface the loader expects from a downloader."""

    def fetch(self, url: str) -> FetchResult:
        ...


def is_valid_url(url: Optional[str]) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class HttpUrlFetcher:
    """requests-based fetcher.

    Only HTTP 200 counts as success; redirects are followed. Any requests
    exception is logged and reported as a failed fetch.
    """

    DEFAULT_TIMEOUT = 30  # seconds
    DEFAULT_USER_AGENT = "assist-ranker-model-loader/0.1"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def fetch(self, url: str) -> FetchResult:
        logger.info(f"Downloading ranker model from {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Model download failed for {url}: {e}")
            return FetchResult(success=False)

        if response.status_code != 200:
            logger.warning(f"Model download from {url} returned HTTP {response.status_code}")
            return FetchResult(success=False)

        data = response.content
        logger.info(f"Downloaded {len(data)} bytes from {url}")
        return FetchResult(success=True, data=data)

    def close(self) -> None:
        self.session.close()
