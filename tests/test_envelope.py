"""Tests for the cached model envelope"""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from assist_ranker.loader import CachedModel, CacheEnvelopeError, ENVELOPE_FORMAT, ModelStatus


def test_serialize_keeps_metadata():
    entry = CachedModel(
        payload=b"\x00\x01binary",
        source_url="https://example.com/m",
        last_modified_sec=1700000000,
        cache_duration_sec=3600,
    )

    parsed = CachedModel.parse(entry.serialize())

    assert parsed == entry
    assert json.loads(entry.serialize())["format"] == ENVELOPE_FORMAT


def test_expiry():
    entry = CachedModel(payload=b"m", last_modified_sec=1000, cache_duration_sec=100)

    assert not entry.is_expired(1099)
    assert entry.is_expired(1100)
    assert not CachedModel(payload=b"m", last_modified_sec=0).is_expired(10 ** 12)


def test_matches_source():
    entry = CachedModel(payload=b"m", source_url="https://a.example.com/m")

    assert entry.matches_source("https://a.example.com/m")
    assert not entry.matches_source("https://b.example.com/m")
    assert entry.matches_source(None)


@pytest.mark.parametrize("data", [
    b"not json",
    b"[1, 2]",
    json.dumps({"format": ENVELOPE_FORMAT}).encode(),
    json.dumps({"format": ENVELOPE_FORMAT, "payload": "%%%"}).encode(),
    b"\xff\xfe",
])
def test_malformed_entries_are_parse_errors(data):
    with pytest.raises(CacheEnvelopeError) as excinfo:
        CachedModel.parse(data)

    assert excinfo.value.status is ModelStatus.PARSE_ERROR


def test_unknown_format_is_incompatible():
    data = json.dumps({"format": "assist-ranker-cache/99", "payload": ""}).encode()

    with pytest.raises(CacheEnvelopeError) as excinfo:
        CachedModel.parse(data)

    assert excinfo.value.status is ModelStatus.INCOMPATIBLE
