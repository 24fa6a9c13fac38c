"""
Tests for the exception hierarchy.
"""

from __future__ import annotations

from imgcache.exceptions import (
    CacheNotFoundError,
    ImageCacheError,
    StorageError,
    TransportError,
)


class TestImageCacheError:
    """Test base exception formatting."""

    def test_str_without_context(self) -> None:
        """Test that a bare message is rendered as-is."""
        assert str(ImageCacheError("boom")) == "boom"

    def test_str_with_context(self) -> None:
        """Test that context is appended to the message."""
        error = TransportError("Failed to download", context={"uri": "http://x", "attempts": 3})
        assert str(error) == "Failed to download (uri='http://x', attempts=3)"

    def test_repr(self) -> None:
        """Test the debug representation."""
        error = CacheNotFoundError("missing", context={"cache_dir": "/tmp/c"})
        assert repr(error) == "CacheNotFoundError('missing', context={'cache_dir': '/tmp/c'})"

    def test_hierarchy(self) -> None:
        """Test that every error derives from ImageCacheError."""
        for cls in (TransportError, StorageError, CacheNotFoundError):
            assert issubclass(cls, ImageCacheError)
