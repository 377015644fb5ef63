"""Tests for the file cache store"""

import os
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from assist_ranker.storage import FileCacheStore


def test_missing_file_reads_as_none(tmp_path):
    assert FileCacheStore().read_bytes(tmp_path / "absent.model") is None


def test_write_then_read(tmp_path):
    store = FileCacheStore()
    target = tmp_path / "nested" / "dir" / "ranker.model"

    store.write_bytes(target, b"model bytes")

    assert store.read_bytes(target) == b"model bytes"
    assert store.read_bytes(str(target)) == b"model bytes"


def test_write_replaces_and_leaves_no_temp_files(tmp_path):
    store = FileCacheStore()
    target = tmp_path / "ranker.model"

    store.write_bytes(target, b"old")
    store.write_bytes(target, b"new")

    assert target.read_bytes() == b"new"
    assert os.listdir(tmp_path) == ["ranker.model"]


def test_read_error_propagates(tmp_path):
    # A directory cannot be read as a file
    with pytest.raises(OSError):
        FileCacheStore().read_bytes(tmp_path)


def test_write_error_propagates(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")

    with pytest.raises(OSError):
        FileCacheStore().write_bytes(blocker / "ranker.model", b"data")
