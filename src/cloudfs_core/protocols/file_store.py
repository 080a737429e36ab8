"""CloudFileStore protocol for file storage backends."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import BinaryIO, Protocol, TypeVar, runtime_checkable

R = TypeVar("R")

Writer = Callable[[BinaryIO], Awaitable[R]]
Reader = Callable[[BinaryIO], Awaitable[R]]


@dataclass(frozen=True)
class StoreIdentity:
    """Identifies a store instance across executions."""

    name: str
    id: str


@runtime_checkable
class CloudFileStore(Protocol):
    """Protocol for file storage backends (local disk, blob stores, remote).

    Paths are opaque strings in the store's own namespace. Path methods are
    synchronous and pure; everything touching the backend is async.
    """

    # Implementation name, e.g. "local"
    name: str
    # Distinguishes instances of the same implementation
    id: str

    def get_root_directory(self) -> str:
        """Return the store's top-level directory."""
        ...

    def create_unique_directory_path(self) -> str:
        """Return a directory path no other call will return. Does not create it."""
        ...

    def try_get_full_path(self, path: str) -> str | None:
        """Return the normal form of a path, or None if it is not valid here."""
        ...

    def get_directory_name(self, path: str) -> str:
        """Return the parent directory of a path."""
        ...

    def get_file_name(self, path: str) -> str:
        """Return the final segment of a path."""
        ...

    def combine(self, paths: Sequence[str]) -> str:
        """Join path segments into a path."""
        ...

    async def get_file_size(self, path: str) -> int:
        """Return the size of a file in bytes."""
        ...

    async def file_exists(self, path: str) -> bool:
        """Check if a file exists."""
        ...

    async def enumerate_files(self, directory: str) -> list[str]:
        """List files directly under a directory."""
        ...

    async def delete_file(self, path: str) -> None:
        """Delete a file. No-op if file doesn't exist."""
        ...

    async def directory_exists(self, directory: str) -> bool:
        """Check if a directory exists."""
        ...

    async def create_directory(self, directory: str) -> None:
        """Create a directory and any missing parents."""
        ...

    async def delete_directory(self, directory: str, recursive: bool = False) -> None:
        """Delete a directory, with its contents if recursive."""
        ...

    async def enumerate_directories(self, directory: str) -> list[str]:
        """List directories directly under a directory."""
        ...

    async def write(self, path: str, writer: Writer[R]) -> R:
        """Create or overwrite a file with the output of a writer function.

        The file is committed only if the writer returns; otherwise nothing
        is left at the path.
        """
        ...

    async def begin_read(self, path: str) -> BinaryIO:
        """Open an existing file for reading. The caller must close the stream."""
        ...

    async def of_stream(self, source: BinaryIO, target: str) -> None:
        """Create or overwrite a file with the remaining contents of a stream."""
        ...

    async def to_stream(self, source_file: str, target: BinaryIO) -> None:
        """Copy a file into a stream at its current position."""
        ...
