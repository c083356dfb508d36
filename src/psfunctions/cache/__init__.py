"""Persistent, freshness-keyed cache of extracted function names."""

from psfunctions.cache.freshness import FreshnessCache
from psfunctions.cache.protocols import CacheStore
from psfunctions.cache.sql_store import SqlCacheStore

__all__ = [
    "CacheStore",
    "FreshnessCache",
    "SqlCacheStore",
]
