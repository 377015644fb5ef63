"""
Model Cache Store

Byte-level persistence for cached ranker models. The loader calls these
methods from its background worker only.

Writes are atomic: data goes to a temporary file in the target directory
which is then renamed over the destination.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class CacheStore(Protocol):
    """Interface the loader expects from a cache backend."""

    def read_bytes(self, location: PathLike) -> Optional[bytes]:
        """Return cached bytes, None when absent. Raises OSError on read errors."""
        ...

    def write_bytes(self, location: PathLike, data: bytes) -> None:
        """Persist bytes. Raises OSError on failure."""
        ...


class FileCacheStore:
    """Local filesystem cache store."""

    def read_bytes(self, location: PathLike) -> Optional[bytes]:
        path = Path(location)
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except FileNotFoundError:
            logger.debug(f"No cached model at {path}")
            return None

        logger.debug(f"Read {len(data)} bytes from {path}")
        return data

    def write_bytes(self, location: PathLike, data: bytes) -> None:
        path = Path(location)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError:
            # Clean up partial write
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug(f"Wrote {len(data)} bytes to {path}")
