"""Plugin discovery via Python entry points."""

from importlib.metadata import entry_points
from typing import Any

from cloudfs_core.exceptions import ConfigError
from cloudfs_core.protocols import CloudFileStore, Serializer

PLUGIN_GROUPS = {
    "files": "cloudfs_core.backends.files",
    "serializers": "cloudfs_core.serializers",
}


def discover_plugins(group: str) -> dict[str, Any]:
    """Discover all registered plugins for a given group.

    Args:
        group: The plugin group name (files, serializers)

    Returns:
        Dictionary mapping plugin names to their classes
    """
    full_group = PLUGIN_GROUPS.get(group, group)
    eps = entry_points(group=full_group)
    return {ep.name: ep.load() for ep in eps}


def get_plugin(group: str, name: str) -> Any:
    """Get a specific plugin class by group and name.

    Args:
        group: The plugin group name (files, serializers)
        name: The plugin name (e.g., "local", "json")

    Returns:
        The plugin class

    Raises:
        ConfigError: If the plugin is not found
    """
    plugins = discover_plugins(group)
    if name not in plugins:
        available = ", ".join(sorted(plugins.keys())) or "(none)"
        raise ConfigError(
            f"Plugin '{name}' not found in group '{group}'. Available: {available}"
        )
    return plugins[name]


def create_file_store(backend: str, **kwargs: Any) -> CloudFileStore:
    """Create a CloudFileStore instance.

    Args:
        backend: The backend name (e.g., "local", "memory", "http")
        **kwargs: Backend-specific configuration

    Returns:
        A CloudFileStore implementation
    """
    cls = get_plugin("files", backend)
    return cls(**kwargs)


def create_serializer(name: str, **kwargs: Any) -> Serializer:
    """Create a Serializer instance.

    Args:
        name: The serializer name (e.g., "json", "pickle")
        **kwargs: Serializer-specific configuration

    Returns:
        A Serializer implementation
    """
    cls = get_plugin("serializers", name)
    return cls(**kwargs)
