"""
Pytest configuration and fixtures for image cache tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from imgcache.cache.file_cache import LocalFileStorage
from imgcache.config import Settings, clear_settings_cache


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """Provide a cache directory path that does not exist yet."""
    return temp_dir / "image-cache"


@pytest.fixture
def storage() -> LocalFileStorage:
    """Provide local filesystem storage."""
    return LocalFileStorage()


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "CACHE_DIR": str(temp_dir / "env-cache"),
        "DEFAULT_EXTENSION": ".png",
        "FETCH_TIMEOUT": "5.0",
        "FETCH_MAX_ATTEMPTS": "2",
        "FETCH_BACKOFF": "0",
        "USER_AGENT": "imgcache-tests/1.0",
        "SINGLE_FLIGHT": "true",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str]) -> Generator[Settings, None, None]:
    """Provide a Settings instance with mock configuration."""
    from imgcache.config import get_settings

    settings = get_settings()
    settings.ensure_directories()
    yield settings
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Detach handlers added by setup_logging so each test starts unconfigured."""
    root_logger = logging.getLogger("imgcache")
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    saved_propagate = root_logger.propagate
    yield
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)
    root_logger.propagate = saved_propagate
