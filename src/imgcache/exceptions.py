"""
Custom exception hierarchy for the image cache.

All exceptions inherit from ImageCacheError, which provides optional context
for structured error handling and logging.
"""

from __future__ import annotations

from typing import Any


class ImageCacheError(Exception):
    """Base exception for all image cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class TransportError(ImageCacheError):
    """Raised when a download cannot be carried out at the transport level.

    Distinct from a clean non-2xx response, which is reported through
    FetchResult rather than raised.

    Context should include:
        - uri: The URI that was being fetched
        - attempts: Number of attempts made
        - error: The underlying error message
    """

    pass


class StorageError(ImageCacheError):
    """Raised when a storage operation that must succeed fails.

    Context should include:
        - operation: The storage operation (e.g., "move")
        - path: The path(s) involved
        - error: The underlying error message
    """

    pass


class CacheNotFoundError(ImageCacheError):
    """Raised when the cache directory does not exist.

    Context should include:
        - cache_dir: The missing directory
    """

    pass
