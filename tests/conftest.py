"""Pytest configuration and fixtures."""

import logging

import httpx
import pytest

from cloudfs_core.backends.files.http import HttpFileStore
from cloudfs_core.backends.files.local import LocalFileStore
from cloudfs_core.backends.files.memory import MemoryFileStore
from cloudfs_core.caching import TTLCache
from cloudfs_core.configuration import StoreConfiguration
from cloudfs_core.serializers import JsonSerializer
from cloudfs_core.server import create_app


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging calls made by a test."""
    logger = logging.getLogger("cloudfs_core")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def local_store(tmp_path) -> LocalFileStore:
    """Local store rooted in a temporary directory."""
    return LocalFileStore(path=str(tmp_path / "store"))


@pytest.fixture
def memory_store() -> MemoryFileStore:
    """Empty in-memory store."""
    return MemoryFileStore(store_id="memory:test")


@pytest.fixture
def backing_store() -> MemoryFileStore:
    """Store served by the in-process HTTP server."""
    return MemoryFileStore(store_id="memory:backing")


@pytest.fixture
def http_store(backing_store: MemoryFileStore) -> HttpFileStore:
    """HTTP store talking to an in-process server over ASGI."""
    app = create_app(backing_store)
    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    )
    return HttpFileStore(client=client)


@pytest.fixture(params=["local", "memory", "http"])
def store(request):
    """Every bundled backend, one at a time."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def store_config(memory_store: MemoryFileStore) -> StoreConfiguration:
    """Configuration over the in-memory store with a default directory."""
    return StoreConfiguration(
        file_store=memory_store,
        default_directory="memory://work",
        cache=TTLCache(ttl_seconds=60),
        serializer=JsonSerializer(),
    )


@pytest.fixture
def sample_config_dict(tmp_path):
    """Sample configuration dictionary for testing."""
    return {
        "files": {"backend": "local", "path": str(tmp_path / "files")},
        "default_directory": "/work",
        "cache": {"ttl_seconds": 120, "max_size": 10},
        "serializer": "json",
        "logging": {"level": "DEBUG", "format": "text"},
    }
