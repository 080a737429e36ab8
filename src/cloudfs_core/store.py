"""Operations derived from any CloudFileStore.

Nothing here needs more than the CloudFileStore protocol, so every backend
gets these for free.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import BinaryIO, TypeVar

from cloudfs_core import paths as store_paths
from cloudfs_core.protocols import CloudFileStore, Reader, StoreIdentity

T = TypeVar("T")


def store_identity(store: CloudFileStore) -> StoreIdentity:
    """Return the identity of a store instance."""
    return StoreIdentity(name=store.name, id=store.id)


def get_random_file_path(store: CloudFileStore, directory: str) -> str:
    """Generate a random file path inside a directory.

    Not guaranteed collision-free, unlike create_unique_directory_path().
    """
    return store.combine([directory, store_paths.random_file_name()])


async def enumerate_root_directories(store: CloudFileStore) -> list[str]:
    """Enumerate all directories inside the root directory."""
    return await store.enumerate_directories(store.get_root_directory())


@asynccontextmanager
async def open_read(store: CloudFileStore, path: str) -> AsyncIterator[BinaryIO]:
    """Open a file for reading for the duration of an ``async with`` block.

    Example:
        async with open_read(store, "/data/a.txt") as stream:
            header = stream.read(4)
    """
    stream = await store.begin_read(path)
    try:
        yield stream
    finally:
        stream.close()


async def read(store: CloudFileStore, deserializer: Reader[T], path: str) -> T:
    """Read a file with a deserializer function.

    The stream is closed whether or not the deserializer succeeds.

    Args:
        store: Store holding the file
        deserializer: Async function consuming the read stream
        path: Path to an existing file

    Returns:
        The deserializer's result
    """
    async with open_read(store, path) as stream:
        return await deserializer(stream)
