"""
Core types for the image cache.

This module defines the data structures shared by the cache and its
capabilities:
- EntryState enum for the resolution status of a cache entry
- Frozen dataclasses for immutable values (DownloadOptions, FetchResult, FileInfo)
- Helper for unique staging tokens
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from uuid6 import uuid7


def generate_token() -> str:
    """Generate a time-ordered unique token using UUID7.

    Returns:
        32-character hex string, unique per call.
    """
    return uuid7().hex


class EntryState(str, Enum):
    """Resolution status of a cache entry."""

    PENDING = "pending"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class DownloadOptions:
    """Options used when fetching a URI.

    Captured by the first request for a URI; later requests for the same
    URI reuse them.

    Attributes:
        headers: Extra request headers for the download.
        md5: Ask the fetcher to report an MD5 digest of the body.
    """

    headers: dict[str, str] = field(default_factory=dict)
    md5: bool = False


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a download that reached the server."""

    status_code: int
    size: int = 0
    md5: str | None = None

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class FileInfo:
    """Metadata about a path in storage.

    Attributes:
        path: The path that was inspected.
        exists: Whether anything exists at the path.
        size: Size in bytes; for directories, the total size of files below it.
        modified_at: Last modification time as epoch seconds.
        is_directory: Whether the path is a directory.
    """

    path: str
    exists: bool
    size: int = 0
    modified_at: float | None = None
    is_directory: bool = False

    @property
    def modified_datetime(self) -> datetime | None:
        """Modification time as an aware UTC datetime."""
        if self.modified_at is None:
            return None
        return datetime.fromtimestamp(self.modified_at, tz=timezone.utc)
