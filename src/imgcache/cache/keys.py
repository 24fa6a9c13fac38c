"""
Cache key derivation.

Maps a URI to its canonical on-disk location and a unique staging location.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from imgcache.types import generate_token

DEFAULT_EXTENSION = ".jpg"


@dataclass(frozen=True)
class CacheKey:
    """Locations for one URI inside the cache directory."""

    canonical_path: Path
    staging_path: Path


def infer_extension(uri: str, default: str = DEFAULT_EXTENSION) -> str:
    """Infer a file extension from the last path segment of a URI.

    The query string is ignored. The extension runs from the last dot of the
    segment, so "http://x/a/b.png?x=1" gives ".png" and "http://x/a/b" gives
    the default.
    """
    path_part = uri.split("?", 1)[0]
    filename = path_part[path_part.rfind("/") + 1 :]
    dot = filename.rfind(".")
    if dot == -1:
        return default
    return filename[dot:]


def uri_digest(uri: str) -> str:
    """SHA-1 hex digest of a URI."""
    return hashlib.sha1(uri.encode("utf-8")).hexdigest()


class KeyDeriver:
    """Derives cache locations for URIs under a base directory.

    Pure apart from the staging token: no I/O, and the canonical path depends
    on the URI alone.
    """

    def __init__(self, base_dir: str | Path, default_extension: str = DEFAULT_EXTENSION) -> None:
        """Initialize the deriver.

        Args:
            base_dir: Cache directory all paths are placed in.
            default_extension: Extension for URIs whose file name has no dot.
        """
        self.base_dir = Path(base_dir)
        self.default_extension = default_extension

    def canonical_path(self, uri: str) -> Path:
        """Get the stable location of the cached copy of uri."""
        ext = infer_extension(uri, self.default_extension)
        return self.base_dir / f"{uri_digest(uri)}{ext}"

    def derive(self, uri: str) -> CacheKey:
        """Derive the canonical path and a fresh staging path for uri.

        The staging name carries a unique token so concurrent downloads of
        the same URI never share a file.
        """
        digest = uri_digest(uri)
        ext = infer_extension(uri, self.default_extension)
        return CacheKey(
            canonical_path=self.base_dir / f"{digest}{ext}",
            staging_path=self.base_dir / f"{digest}-{generate_token()}{ext}",
        )
