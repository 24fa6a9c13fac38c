"""
imgcache - content-addressed local disk cache for remote images.

Given a URI, ensures a local copy exists in the cache directory, avoids
redundant downloads, and reclaims space by age-based eviction.
"""

from imgcache.cache import CacheCoordinator, CacheEntry, CacheKey, KeyDeriver
from imgcache.types import DownloadOptions, EntryState, FetchResult

__version__ = "0.1.0"

__all__ = [
    "CacheCoordinator",
    "CacheEntry",
    "CacheKey",
    "DownloadOptions",
    "EntryState",
    "FetchResult",
    "KeyDeriver",
    "__version__",
]
