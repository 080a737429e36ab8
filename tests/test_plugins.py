"""Tests for plugin discovery."""

import pytest

from cloudfs_core.backends.files.http import HttpFileStore
from cloudfs_core.backends.files.local import LocalFileStore
from cloudfs_core.backends.files.memory import MemoryFileStore
from cloudfs_core.exceptions import ConfigError
from cloudfs_core.plugins import (
    create_file_store,
    create_serializer,
    discover_plugins,
    get_plugin,
)
from cloudfs_core.serializers import JsonSerializer, PickleSerializer


class TestDiscovery:
    """Tests for entry point discovery."""

    def test_bundled_file_stores(self) -> None:
        """Bundled backends are registered."""
        plugins = discover_plugins("files")

        assert plugins["local"] is LocalFileStore
        assert plugins["memory"] is MemoryFileStore
        assert plugins["http"] is HttpFileStore

    def test_bundled_serializers(self) -> None:
        """Bundled serializers are registered."""
        plugins = discover_plugins("serializers")

        assert plugins["json"] is JsonSerializer
        assert plugins["pickle"] is PickleSerializer

    def test_unknown_group(self) -> None:
        """Unknown groups have no plugins."""
        assert discover_plugins("no.such.group") == {}

    def test_unknown_plugin(self) -> None:
        """Missing plugins list what is available."""
        with pytest.raises(ConfigError, match="local"):
            get_plugin("files", "ftp")


class TestFactories:
    """Tests for plugin factories."""

    def test_create_file_store(self, tmp_path) -> None:
        """Settings are passed to the backend."""
        store = create_file_store("local", path=str(tmp_path))

        assert isinstance(store, LocalFileStore)
        assert store.base_path == tmp_path.resolve()

    def test_create_serializer(self) -> None:
        """Serializer settings are passed through."""
        serializer = create_serializer("json", indent=4)

        assert isinstance(serializer, JsonSerializer)
        assert serializer.indent == 4
