"""
Cache package for downloaded resources.

This package provides:
- Capability interfaces (base.py): Storage and Fetcher
- Key derivation (keys.py): URI -> canonical and staging paths
- Local storage (file_cache.py): aiofiles-backed Storage
- Coordination (manager.py): registry, get-or-fetch, sweep, size accounting
"""

from imgcache.cache.base import Fetcher, Storage
from imgcache.cache.keys import CacheKey, KeyDeriver
from imgcache.cache.file_cache import LocalFileStorage
from imgcache.cache.manager import CacheCoordinator, CacheEntry

__all__ = [
    "CacheCoordinator",
    "CacheEntry",
    "CacheKey",
    "Fetcher",
    "KeyDeriver",
    "LocalFileStorage",
    "Storage",
]
