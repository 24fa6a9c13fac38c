"""
Local filesystem storage for cached files.

Implements the Storage capability on top of aiofiles so that disk I/O
never blocks the event loop:
- Atomic publish via os.replace within the cache directory
- Idempotent directory creation and deletion
- Aggregate directory size for cache accounting
"""

from __future__ import annotations

import asyncio
import os
import shutil
import stat as stat_module
from pathlib import Path

import aiofiles.os

from imgcache.cache.base import Storage
from imgcache.exceptions import StorageError
from imgcache.logging import get_logger
from imgcache.types import FileInfo

logger = get_logger(__name__)


def _directory_size(path: str) -> int:
    """Total size of regular files below path (blocking)."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.stat(os.path.join(root, name)).st_size
            except FileNotFoundError:
                # Deleted while walking
                continue
    return total


class LocalFileStorage(Storage):
    """Storage backed by the local filesystem."""

    async def exists(self, path: str | Path) -> bool:
        """Check existence asynchronously."""
        return bool(await aiofiles.os.path.exists(path))

    async def make_directory(self, path: str | Path) -> None:
        """Create directory and parents asynchronously."""
        await aiofiles.os.makedirs(path, exist_ok=True)

    async def move(self, src: str | Path, dst: str | Path) -> None:
        """Atomically replace dst with src.

        Raises:
            StorageError: If the rename fails.
        """
        try:
            await aiofiles.os.replace(src, dst)
        except OSError as e:
            raise StorageError(
                "Failed to move file",
                context={"operation": "move", "src": str(src), "dst": str(dst), "error": str(e)},
            ) from e

    async def delete(self, path: str | Path) -> None:
        """Delete a file or directory tree; missing paths are ignored."""
        try:
            if await aiofiles.os.path.isdir(path):
                # shutil.rmtree is blocking, run in executor
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, shutil.rmtree, str(path))
            else:
                await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug("Delete skipped, path missing", path=str(path))

    async def list_directory(self, path: str | Path) -> list[str]:
        """List directory contents asynchronously."""
        entries: list[str] = await aiofiles.os.listdir(path)
        return entries

    async def stat(self, path: str | Path) -> FileInfo:
        """Get metadata for path; directories report the size of their contents."""
        try:
            st = await aiofiles.os.stat(path)
        except FileNotFoundError:
            return FileInfo(path=str(path), exists=False)

        is_directory = stat_module.S_ISDIR(st.st_mode)
        size = st.st_size
        if is_directory:
            loop = asyncio.get_running_loop()
            size = await loop.run_in_executor(None, _directory_size, str(path))

        return FileInfo(
            path=str(path),
            exists=True,
            size=size,
            modified_at=st.st_mtime,
            is_directory=is_directory,
        )
