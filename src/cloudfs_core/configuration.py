"""Store configuration bound to one execution."""

from dataclasses import dataclass, replace

from cloudfs_core.protocols import Cache, CloudFileStore, Serializer


@dataclass(frozen=True)
class StoreConfiguration:
    """Immutable bundle of a store, its default directory, a cache and a serializer.

    Constructed once per execution and shared by reference for its lifetime.
    A different default directory means a new configuration value.
    """

    file_store: CloudFileStore
    default_directory: str
    cache: Cache
    serializer: Serializer

    def with_default_directory(self, directory: str) -> "StoreConfiguration":
        """Return a copy that uses another default directory."""
        return replace(self, default_directory=directory)
