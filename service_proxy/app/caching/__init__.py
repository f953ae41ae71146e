"""
Proxy caching package.

A fresh store answers repeated requests without touching the upstream;
a longer-lived stale store is only read as a fallback when a live call
fails. Entries expire lazily at read time and nothing is persisted.
"""

from .cache_key import make_cache_key
from .cache_store import CacheEntry, CacheStore
from .coalescer import RequestCoalescer

__all__ = [
    "make_cache_key",
    "CacheEntry",
    "CacheStore",
    "RequestCoalescer",
]
