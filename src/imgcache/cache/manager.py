"""
Cache coordination: registry, get-or-fetch, eviction and size accounting.

A CacheCoordinator owns the registry of entries (URI -> CacheEntry) for one
cache directory. Each entry resolves its local path on demand:

1. If the canonical file already exists on disk, it is returned.
2. Otherwise the URI is downloaded into a uniquely named staging file.
3. A non-2xx status resolves to None and nothing is published.
4. A successful download is published with an atomic rename.

Concurrent resolutions of the same URI share one in-flight download when
single-flight is enabled.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from types import TracebackType
from typing import Iterable

from imgcache.cache.base import Fetcher, Storage
from imgcache.cache.file_cache import LocalFileStorage
from imgcache.cache.keys import DEFAULT_EXTENSION, KeyDeriver
from imgcache.config import Settings, get_settings
from imgcache.exceptions import CacheNotFoundError, ImageCacheError
from imgcache.logging import get_logger, log_context, setup_logging
from imgcache.retrieval.fetch import HttpFetcher
from imgcache.types import DownloadOptions, EntryState

logger = get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class CacheEntry:
    """Cache status of one URI.

    Options are fixed by the first request for the URI. The entry lives as
    long as its coordinator; evicting the file leaves the entry in place and
    the next get_path() fetches again.
    """

    def __init__(self, uri: str, options: DownloadOptions, coordinator: CacheCoordinator) -> None:
        self.uri = uri
        self.options = options
        self.state = EntryState.PENDING
        self.path: Path | None = None
        self._coordinator = coordinator
        self._inflight: asyncio.Task[Path | None] | None = None

    def __repr__(self) -> str:
        return f"CacheEntry(uri={self.uri!r}, state={self.state.value})"

    @property
    def is_resolving(self) -> bool:
        """True while a shared resolution is in flight."""
        return self._inflight is not None

    async def get_path(self) -> Path | None:
        """Resolve the local path of this entry, downloading if needed.

        Returns:
            Canonical path of the cached file, or None if the server did not
            return a successful response.

        Raises:
            TransportError: If the download could not be carried out.
            StorageError: If the downloaded file could not be published.
        """
        if not self._coordinator.single_flight:
            return await self._resolve()

        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._resolve())
            task.add_done_callback(self._release)
            self._inflight = task
        else:
            logger.debug("Joining in-flight resolution", uri=self.uri)

        # A cancelled waiter must not cancel the download other waiters share
        return await asyncio.shield(task)

    def _release(self, task: asyncio.Task[Path | None]) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark the exception retrieved when every waiter was cancelled
            task.exception()

    async def _resolve(self) -> Path | None:
        coordinator = self._coordinator
        storage = coordinator.storage

        with log_context(uri=self.uri, operation="resolve"):
            key = coordinator.key_deriver.derive(self.uri)

            if await storage.exists(key.canonical_path):
                logger.debug("Cache hit", path=str(key.canonical_path))
                self.state = EntryState.RESOLVED
                self.path = key.canonical_path
                return key.canonical_path

            self.state = EntryState.RESOLVING
            try:
                await coordinator.ensure_cache_dir()
                result = await coordinator.fetcher.download(
                    self.uri, key.staging_path, self.options
                )

                if not result.ok:
                    logger.info(
                        "Download failed, nothing cached",
                        status_code=result.status_code,
                    )
                    self.state = EntryState.FAILED
                    return None

                await storage.move(key.staging_path, key.canonical_path)
            except BaseException:
                self.state = EntryState.FAILED
                raise

            logger.info(
                "Published cache entry",
                path=str(key.canonical_path),
                size=result.size,
                md5=result.md5,
            )
            self.state = EntryState.RESOLVED
            self.path = key.canonical_path
            return key.canonical_path


class CacheCoordinator:
    """Coordinates cached downloads in one cache directory.

    Owns the URI -> CacheEntry registry. Storage and Fetcher are injected
    capabilities; from_settings() wires the local filesystem and HTTP ones.
    """

    def __init__(
        self,
        storage: Storage,
        fetcher: Fetcher,
        cache_dir: str | Path,
        default_extension: str = DEFAULT_EXTENSION,
        single_flight: bool = True,
    ) -> None:
        """Initialize the coordinator.

        Args:
            storage: Filesystem capability for the cache directory.
            fetcher: Download capability.
            cache_dir: Base directory for cached files.
            default_extension: Extension for URIs without one.
            single_flight: Share one download between concurrent resolutions
                of the same URI.
        """
        self.storage = storage
        self.fetcher = fetcher
        self.cache_dir = Path(cache_dir)
        self.key_deriver = KeyDeriver(self.cache_dir, default_extension)
        self.single_flight = single_flight
        self._entries: dict[str, CacheEntry] = {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CacheCoordinator:
        """Build a coordinator on the local filesystem with an HTTP fetcher.

        Also attaches the console log handler at settings.LOG_LEVEL.
        """
        settings = settings or get_settings()
        setup_logging(settings.LOG_LEVEL)
        return cls(
            storage=LocalFileStorage(),
            fetcher=HttpFetcher.from_settings(settings),
            cache_dir=settings.CACHE_DIR,
            default_extension=settings.DEFAULT_EXTENSION,
            single_flight=settings.SINGLE_FLIGHT,
        )

    async def close(self) -> None:
        """Close the fetcher."""
        await self.fetcher.close()

    async def __aenter__(self) -> CacheCoordinator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, uri: str, options: DownloadOptions | None = None) -> CacheEntry:
        """Look up the entry for uri, creating it on first use.

        Options only apply when the entry is created; an existing entry keeps
        the options of the request that created it.
        """
        options = options or DownloadOptions()
        # No await between lookup and insert: first touch is atomic on the loop
        entry = self._entries.get(uri)
        if entry is None:
            entry = CacheEntry(uri, options, self)
            self._entries[uri] = entry
        elif entry.options != options:
            logger.debug("Ignoring options for known entry", uri=uri)
        return entry

    async def resolve(self, uri: str, options: DownloadOptions | None = None) -> Path | None:
        """Get the local path for uri, downloading it if not cached.

        Returns:
            Canonical path, or None if the download returned a non-2xx status.
        """
        return await self.get(uri, options).get_path()

    def resolve_multiple(
        self,
        uris: Iterable[str],
        options: DownloadOptions | None = None,
    ) -> list[CacheEntry]:
        """Register several URIs without resolving them.

        Returns:
            Entries in input order. Await entry.get_path() on the ones whose
            paths are needed.
        """
        return [self.get(uri, options) for uri in uris]

    async def ensure_cache_dir(self) -> None:
        """Create the cache directory if missing."""
        await self.storage.make_directory(self.cache_dir)

    async def clear_cache(self) -> None:
        """Delete every cached file and recreate the empty cache directory.

        The registry is kept; entries re-check the disk on their next
        resolution.
        """
        with log_context(operation="clear"):
            await self.storage.delete(self.cache_dir)
            await self.storage.make_directory(self.cache_dir)
            logger.info("Cache cleared", cache_dir=str(self.cache_dir))

    async def clear_cache_before(self, days: float) -> int:
        """Delete cached files not modified within the last `days` days.

        Only files directly in the cache directory are considered. A file
        that cannot be inspected or deleted is skipped.

        Returns:
            Number of files deleted.

        Raises:
            CacheNotFoundError: If the cache directory does not exist.
        """
        with log_context(operation="sweep"):
            max_age = days * SECONDS_PER_DAY
            now = time.time()

            try:
                names = await self.storage.list_directory(self.cache_dir)
            except FileNotFoundError as e:
                raise CacheNotFoundError(
                    f"{self.cache_dir} not found",
                    context={"cache_dir": str(self.cache_dir)},
                ) from e

            async def evict_if_stale(name: str) -> bool:
                path = self.cache_dir / name
                try:
                    info = await self.storage.stat(path)
                    if info.is_directory or info.modified_at is None:
                        return False
                    if now - info.modified_at > max_age:
                        await self.storage.delete(path)
                        return True
                except (OSError, ImageCacheError) as e:
                    logger.warning("Skipping file during sweep", path=str(path), error=str(e))
                return False

            results = await asyncio.gather(*[evict_if_stale(name) for name in names])
            evicted = sum(1 for deleted in results if deleted)

            logger.info(
                "Sweep complete",
                scanned=len(names),
                evicted=evicted,
                max_age_days=days,
            )
            return evicted

    async def get_cache_size(self) -> int:
        """Get the total size in bytes of the cache directory.

        Raises:
            CacheNotFoundError: If the cache directory does not exist.
        """
        info = await self.storage.stat(self.cache_dir)
        if not info.exists:
            raise CacheNotFoundError(
                f"{self.cache_dir} not found",
                context={"cache_dir": str(self.cache_dir)},
            )
        return info.size
