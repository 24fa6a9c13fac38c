"""
Capability interfaces consumed by the cache coordinator.

- Storage: directory create/list/stat/delete/move over the cache directory
- Fetcher: downloads a URI into a local path and reports the status
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from imgcache.types import DownloadOptions, FetchResult, FileInfo


class Storage(ABC):
    """Abstract interface for the filesystem holding cached files."""

    @abstractmethod
    async def exists(self, path: str | Path) -> bool:
        """Check if a file or directory exists at path."""
        ...

    @abstractmethod
    async def make_directory(self, path: str | Path) -> None:
        """Create a directory and its parents. Already existing is not an error."""
        ...

    @abstractmethod
    async def move(self, src: str | Path, dst: str | Path) -> None:
        """Atomically move src to dst, replacing dst if present."""
        ...

    @abstractmethod
    async def delete(self, path: str | Path) -> None:
        """Delete a file or directory tree. Missing paths are not an error."""
        ...

    @abstractmethod
    async def list_directory(self, path: str | Path) -> list[str]:
        """List the names directly under a directory."""
        ...

    @abstractmethod
    async def stat(self, path: str | Path) -> FileInfo:
        """Get metadata for a path. Missing paths yield FileInfo(exists=False)."""
        ...


class Fetcher(ABC):
    """Abstract interface for downloading remote resources."""

    @abstractmethod
    async def download(
        self,
        uri: str,
        dest: str | Path,
        options: DownloadOptions,
    ) -> FetchResult:
        """Download uri into dest.

        Non-2xx responses are reported through the returned FetchResult.

        Raises:
            TransportError: If the transfer could not be carried out.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the fetcher."""
        return None
