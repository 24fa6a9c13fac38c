"""
HTTP fetcher for cache downloads.

Streams a URI to a local staging file via httpx and reports the response
status. Transport failures are retried with exponential backoff.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import aiofiles
import aiofiles.os
import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from imgcache.cache.base import Fetcher
from imgcache.config import Settings
from imgcache.exceptions import TransportError
from imgcache.logging import get_logger
from imgcache.types import DownloadOptions, FetchResult

logger = get_logger(__name__)

# User agent for download requests
USER_AGENT = "imgcache/0.1"

# Request timeout
REQUEST_TIMEOUT = 30.0

# Upper bound on the wait between attempts
MAX_BACKOFF = 10.0


class HttpFetcher(Fetcher):
    """Downloads URIs over HTTP(S) into local files.

    Features:
    - Streaming writes, so large bodies are never held in memory
    - Retries on transport errors (connect failures, timeouts, dropped streams)
    - Only 2xx bodies are written to the destination
    - Optional MD5 digest of the body
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        max_attempts: int = 3,
        backoff: float = 1.0,
        user_agent: str = USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds.
            max_attempts: Attempts per download before giving up.
            backoff: Exponential backoff multiplier in seconds.
            user_agent: User-Agent header for every request.
            client: Pre-built HTTP client (e.g. with a mock transport).
        """
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.user_agent = user_agent
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpFetcher:
        """Build a fetcher from application settings."""
        return cls(
            timeout=settings.FETCH_TIMEOUT,
            max_attempts=settings.FETCH_MAX_ATTEMPTS,
            backoff=settings.FETCH_BACKOFF,
            user_agent=settings.USER_AGENT,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _log_retry(self, retry_state: RetryCallState) -> None:
        """Log a failed attempt before backing off."""
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Download attempt failed, retrying",
            attempt=retry_state.attempt_number,
            error=str(error),
        )

    async def download(
        self,
        uri: str,
        dest: str | Path,
        options: DownloadOptions,
    ) -> FetchResult:
        """Download uri into dest.

        Args:
            uri: URI to fetch.
            dest: Local file to write the body to.
            options: Extra headers and checksum flag.

        Returns:
            FetchResult with the final status code.

        Raises:
            TransportError: If every attempt failed at the transport level.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=MAX_BACKOFF),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    result = await self._stream_to_file(uri, dest, options)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            await self._discard(dest)
            attempts = retrying.statistics.get("attempt_number", 1)
            logger.error("All download attempts failed", uri=uri, error=str(e))
            raise TransportError(
                f"Failed to download {uri}",
                context={"uri": uri, "attempts": attempts, "error": str(e)},
            ) from e
        except OSError:
            await self._discard(dest)
            raise

        if not result.ok:
            # An earlier attempt may have written part of a body before failing
            await self._discard(dest)
        return result

    async def _stream_to_file(
        self,
        uri: str,
        dest: str | Path,
        options: DownloadOptions,
    ) -> FetchResult:
        """Run one GET and stream a successful body into dest."""
        client = await self._get_client()
        digest = hashlib.md5(usedforsecurity=False) if options.md5 else None
        size = 0

        async with client.stream("GET", uri, headers=options.headers) as response:
            if not response.is_success:
                logger.info(
                    "Download returned non-success status",
                    uri=uri,
                    status_code=response.status_code,
                )
                return FetchResult(status_code=response.status_code)

            async with aiofiles.open(dest, "wb") as f:
                async for chunk in response.aiter_bytes():
                    await f.write(chunk)
                    size += len(chunk)
                    if digest is not None:
                        digest.update(chunk)

            logger.debug("Downloaded body", uri=uri, size=size)
            return FetchResult(
                status_code=response.status_code,
                size=size,
                md5=digest.hexdigest() if digest is not None else None,
            )

    async def _discard(self, dest: str | Path) -> None:
        """Remove a partially written destination file."""
        try:
            await aiofiles.os.remove(dest)
        except FileNotFoundError:
            pass
