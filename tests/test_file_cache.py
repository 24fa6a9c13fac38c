"""
Tests for local filesystem storage.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from imgcache.cache.file_cache import LocalFileStorage
from imgcache.exceptions import StorageError


class TestLocalFileStorageBasics:
    """Test basic storage operations."""

    @pytest.mark.asyncio
    async def test_exists(self, storage: LocalFileStorage, temp_dir: Path) -> None:
        """Test existence checks for files and missing paths."""
        path = temp_dir / "a.jpg"
        assert await storage.exists(path) is False

        path.write_bytes(b"data")
        assert await storage.exists(path) is True

    @pytest.mark.asyncio
    async def test_make_directory_is_idempotent(
        self, storage: LocalFileStorage, temp_dir: Path
    ) -> None:
        """Test that creating an existing directory is not an error."""
        target = temp_dir / "nested" / "cache"
        await storage.make_directory(target)
        await storage.make_directory(target)
        assert target.is_dir()

    @pytest.mark.asyncio
    async def test_list_directory(self, storage: LocalFileStorage, temp_dir: Path) -> None:
        """Test listing names directly under a directory."""
        (temp_dir / "a.jpg").write_bytes(b"a")
        (temp_dir / "b.png").write_bytes(b"b")
        (temp_dir / "sub").mkdir()
        (temp_dir / "sub" / "c.gif").write_bytes(b"c")

        names = await storage.list_directory(temp_dir)
        assert sorted(names) == ["a.jpg", "b.png", "sub"]

    @pytest.mark.asyncio
    async def test_list_missing_directory_raises(
        self, storage: LocalFileStorage, temp_dir: Path
    ) -> None:
        """Test that listing a missing directory raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            await storage.list_directory(temp_dir / "missing")


class TestLocalFileStorageMove:
    """Test publishing files by rename."""

    @pytest.mark.asyncio
    async def test_move_replaces_target(self, storage: LocalFileStorage, temp_dir: Path) -> None:
        """Test that move replaces an existing destination."""
        src = temp_dir / "staging.jpg"
        dst = temp_dir / "final.jpg"
        src.write_bytes(b"new")
        dst.write_bytes(b"old")

        await storage.move(src, dst)

        assert not src.exists()
        assert dst.read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_move_missing_source_raises_storage_error(
        self, storage: LocalFileStorage, temp_dir: Path
    ) -> None:
        """Test that a failed move is reported as StorageError."""
        with pytest.raises(StorageError) as exc_info:
            await storage.move(temp_dir / "missing.jpg", temp_dir / "final.jpg")

        assert exc_info.value.context["operation"] == "move"


class TestLocalFileStorageDelete:
    """Test idempotent deletion."""

    @pytest.mark.asyncio
    async def test_delete_file(self, storage: LocalFileStorage, temp_dir: Path) -> None:
        """Test deleting a single file."""
        path = temp_dir / "a.jpg"
        path.write_bytes(b"a")

        await storage.delete(path)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_delete_directory_tree(
        self, storage: LocalFileStorage, temp_dir: Path
    ) -> None:
        """Test deleting a directory with contents."""
        root = temp_dir / "cache"
        (root / "sub").mkdir(parents=True)
        (root / "a.jpg").write_bytes(b"a")
        (root / "sub" / "b.jpg").write_bytes(b"b")

        await storage.delete(root)
        assert not root.exists()

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(
        self, storage: LocalFileStorage, temp_dir: Path
    ) -> None:
        """Test that deleting a missing path does not raise."""
        await storage.delete(temp_dir / "missing.jpg")
        await storage.delete(temp_dir / "missing-dir")


class TestLocalFileStorageStat:
    """Test metadata lookups."""

    @pytest.mark.asyncio
    async def test_stat_file(self, storage: LocalFileStorage, temp_dir: Path) -> None:
        """Test stat on a regular file."""
        path = temp_dir / "a.jpg"
        path.write_bytes(b"12345")
        os.utime(path, (1_700_000_000, 1_700_000_000))

        info = await storage.stat(path)

        assert info.exists is True
        assert info.is_directory is False
        assert info.size == 5
        assert info.modified_at == pytest.approx(1_700_000_000)
        assert info.modified_datetime is not None
        assert info.modified_datetime.year == 2023

    @pytest.mark.asyncio
    async def test_stat_missing(self, storage: LocalFileStorage, temp_dir: Path) -> None:
        """Test stat on a missing path."""
        info = await storage.stat(temp_dir / "missing.jpg")

        assert info.exists is False
        assert info.size == 0
        assert info.modified_at is None
        assert info.modified_datetime is None

    @pytest.mark.asyncio
    async def test_stat_directory_reports_total_size(
        self, storage: LocalFileStorage, temp_dir: Path
    ) -> None:
        """Test that a directory's size is the sum of its files."""
        root = temp_dir / "cache"
        (root / "sub").mkdir(parents=True)
        (root / "a.jpg").write_bytes(b"a" * 10)
        (root / "b.jpg").write_bytes(b"b" * 20)
        (root / "sub" / "c.jpg").write_bytes(b"c" * 5)

        info = await storage.stat(root)

        assert info.exists is True
        assert info.is_directory is True
        assert info.size == 35

    @pytest.mark.asyncio
    async def test_stat_empty_directory(
        self, storage: LocalFileStorage, temp_dir: Path
    ) -> None:
        """Test that an empty directory has size zero."""
        root = temp_dir / "empty"
        root.mkdir()

        info = await storage.stat(root)
        assert info.size == 0
