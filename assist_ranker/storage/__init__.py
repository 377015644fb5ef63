"""Cache storage backends."""

from .cache_store import CacheStore, FileCacheStore

__all__ = ['CacheStore', 'FileCacheStore']
