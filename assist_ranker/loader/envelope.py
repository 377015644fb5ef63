"""
Cached Model Envelope

Downloaded payloads are persisted wrapped in a small JSON envelope that
records where they came from and when, so a later cache load can reject
entries fetched from a different URL or older than their cache duration.

The payload itself stays opaque; the caller's validator decides whether it
is a usable model.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Optional

from assist_ranker.loader.errors import CacheEnvelopeError
from assist_ranker.loader.state import ModelStatus

ENVELOPE_FORMAT = "assist-ranker-cache/1"


@dataclass(frozen=True)
class CachedModel:
    """A model payload plus its cache metadata.

    Attributes:
        payload: Raw model bytes as downloaded
        source_url: URL the payload was downloaded from
        last_modified_sec: Wall-clock time (epoch seconds) of the download
        cache_duration_sec: Lifetime of the entry; 0 means it never expires
    """
    payload: bytes
    source_url: Optional[str] = None
    last_modified_sec: int = 0
    cache_duration_sec: int = 0

    def is_expired(self, now: float) -> bool:
        if self.cache_duration_sec <= 0:
            return False
        return now >= self.last_modified_sec + self.cache_duration_sec

    def matches_source(self, url: Optional[str]) -> bool:
        """True when the entry was fetched from `url` (or no URL to compare)."""
        if not url:
            return True
        return self.source_url == url

    def serialize(self) -> bytes:
        document = {
            "format": ENVELOPE_FORMAT,
            "source_url": self.source_url,
            "last_modified_sec": int(self.last_modified_sec),
            "cache_duration_sec": int(self.cache_duration_sec),
            "payload": base64.b64encode(self.payload).decode("ascii"),
        }
        return json.dumps(document, sort_keys=True).encode("utf-8")

    @classmethod
    def parse(cls, data: bytes) -> "CachedModel":
        """Decode an envelope previously produced by serialize().

        Raises:
            CacheEnvelopeError: PARSE_ERROR for malformed data, INCOMPATIBLE
                for an envelope written in another format
        """
        try:
            document = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheEnvelopeError(f"Cache entry is not valid JSON: {e}")

        if not isinstance(document, dict):
            raise CacheEnvelopeError("Cache entry must be a JSON object")

        fmt = document.get("format")
        if fmt != ENVELOPE_FORMAT:
            raise CacheEnvelopeError(
                f"Unsupported cache format: {fmt!r}",
                status=ModelStatus.INCOMPATIBLE,
            )

        try:
            payload = base64.b64decode(document["payload"], validate=True)
            return cls(
                payload=payload,
                source_url=document.get("source_url"),
                last_modified_sec=int(document.get("last_modified_sec", 0)),
                cache_duration_sec=int(document.get("cache_duration_sec", 0)),
            )
        except KeyError as e:
            raise CacheEnvelopeError(f"Cache entry missing key: {e}")
        except (binascii.Error, TypeError, ValueError) as e:
            raise CacheEnvelopeError(f"Cache entry has bad field: {e}")
