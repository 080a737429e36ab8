"""Protocol interfaces for pluggable backends."""

from cloudfs_core.protocols.cache import Cache
from cloudfs_core.protocols.file_store import (
    CloudFileStore,
    Reader,
    StoreIdentity,
    Writer,
)
from cloudfs_core.protocols.serializer import Serializer

__all__ = [
    "Cache",
    "CloudFileStore",
    "Reader",
    "Serializer",
    "StoreIdentity",
    "Writer",
]
