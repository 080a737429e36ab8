"""File operations against the store carried by a StoreConfiguration.

Every function takes the configuration explicitly. Optional paths default the
same way on every backend:

- file creation without a path writes to a random file in the configuration's
  default directory
- enumeration without a directory lists the store's root directory
- directory creation without a path creates a unique directory

Text helpers default to UTF-8, never to the locale encoding. Stream reads
and writes run in the file I/O thread pool, not on the event loop.
"""

import io
from collections.abc import Iterable
from typing import BinaryIO, TypeVar

from cloudfs_core import store as store_ops
from cloudfs_core.configuration import StoreConfiguration
from cloudfs_core.protocols import CloudFileStore, Reader, Writer
from cloudfs_core.utils import run_blocking

T = TypeVar("T")

DEFAULT_ENCODING = "utf-8"
# Decoding with the default also accepts a leading byte order mark
_DEFAULT_DECODING = "utf-8-sig"


def get_file_store(config: StoreConfiguration) -> CloudFileStore:
    """Return the store carried by the configuration."""
    return config.file_store


# Path operations


def get_directory_name(config: StoreConfiguration, path: str) -> str:
    """Return the directory name for a path."""
    return config.file_store.get_directory_name(path)


def get_file_name(config: StoreConfiguration, path: str) -> str:
    """Return the file name for a path."""
    return config.file_store.get_file_name(path)


def combine(config: StoreConfiguration, *paths: str) -> str:
    """Combine path segments into one path."""
    return config.file_store.combine(paths)


def combine_all(config: StoreConfiguration, directory: str, file_names: Iterable[str]) -> list[str]:
    """Prefix each file name with a directory."""
    fs = config.file_store
    return [fs.combine([directory, name]) for name in file_names]


def create_unique_directory_path(config: StoreConfiguration) -> str:
    """Generate a unique directory path without creating it."""
    return config.file_store.create_unique_directory_path()


def get_random_file_path(config: StoreConfiguration, directory: str | None = None) -> str:
    """Generate a random file path, by default in the default directory."""
    if directory is None:
        directory = config.default_directory
    return store_ops.get_random_file_path(config.file_store, directory)


# File/directory operations


async def get_file_size(config: StoreConfiguration, path: str) -> int:
    """Get the size of a file in bytes."""
    return await config.file_store.get_file_size(path)


async def file_exists(config: StoreConfiguration, path: str) -> bool:
    """Check if a file exists."""
    return await config.file_store.file_exists(path)


async def enumerate_files(config: StoreConfiguration, directory: str | None = None) -> list[str]:
    """List files in a directory. Defaults to the root directory."""
    fs = config.file_store
    if directory is None:
        directory = fs.get_root_directory()
    return await fs.enumerate_files(directory)


async def delete_file(config: StoreConfiguration, path: str) -> None:
    """Delete a file. No-op if it doesn't exist."""
    await config.file_store.delete_file(path)


async def directory_exists(config: StoreConfiguration, directory: str) -> bool:
    """Check if a directory exists."""
    return await config.file_store.directory_exists(directory)


async def create_directory(config: StoreConfiguration, directory: str | None = None) -> str:
    """Create a directory, by default at a unique path.

    Returns:
        The directory that was created
    """
    fs = config.file_store
    if directory is None:
        directory = fs.create_unique_directory_path()
    await fs.create_directory(directory)
    return directory


async def delete_directory(
    config: StoreConfiguration,
    directory: str,
    recursive: bool = False,
) -> None:
    """Delete a directory. Fails on a non-empty directory unless recursive."""
    await config.file_store.delete_directory(directory, recursive=recursive)


async def enumerate_directories(config: StoreConfiguration, directory: str | None = None) -> list[str]:
    """List directories in a directory. Defaults to the root directory."""
    fs = config.file_store
    if directory is None:
        directory = fs.get_root_directory()
    return await fs.enumerate_directories(directory)


async def enumerate_root_directories(config: StoreConfiguration) -> list[str]:
    """List directories in the root directory."""
    return await store_ops.enumerate_root_directories(config.file_store)


# Read/write operations


async def create_file(
    config: StoreConfiguration,
    writer: Writer[object],
    path: str | None = None,
) -> str:
    """Create a file with a writer function.

    Args:
        config: Store configuration
        writer: Async function writing the file contents to a stream
        path: Target path. Defaults to a random file in the default directory.

    Returns:
        The path that was written
    """
    if path is None:
        path = get_random_file_path(config)
    await config.file_store.write(path, writer)
    return path


async def create_file_in(
    config: StoreConfiguration,
    writer: Writer[object],
    directory: str,
    file_name: str,
) -> str:
    """Create a file with a writer function in a directory."""
    path = config.file_store.combine([directory, file_name])
    await config.file_store.write(path, writer)
    return path


async def read_file(config: StoreConfiguration, deserializer: Reader[T], path: str) -> T:
    """Read a file with a deserializer function."""
    return await store_ops.read(config.file_store, deserializer, path)


async def read_lines(
    config: StoreConfiguration,
    path: str,
    encoding: str | None = None,
) -> list[str]:
    """Read a file as a list of lines without line terminators.

    Recognizes ``\\n``, ``\\r\\n`` and ``\\r`` terminators.
    """

    def _decode(stream: BinaryIO) -> list[str]:
        text = io.TextIOWrapper(stream, encoding=encoding or _DEFAULT_DECODING, newline=None)
        try:
            return [line.rstrip("\n") for line in text]
        finally:
            text.detach()

    async def _reader(stream: BinaryIO) -> list[str]:
        return await run_blocking(_decode, stream)

    return await read_file(config, _reader, path)


async def write_lines(
    config: StoreConfiguration,
    lines: Iterable[str],
    encoding: str | None = None,
    path: str | None = None,
) -> str:
    """Write lines to a file, each terminated with ``\\n``.

    Returns:
        The path that was written
    """

    def _encode(stream: BinaryIO) -> None:
        text = io.TextIOWrapper(stream, encoding=encoding or DEFAULT_ENCODING, newline="")
        try:
            for line in lines:
                text.write(line)
                text.write("\n")
            text.flush()
        finally:
            text.detach()

    async def _writer(stream: BinaryIO) -> None:
        await run_blocking(_encode, stream)

    return await create_file(config, _writer, path)


async def read_all_text(
    config: StoreConfiguration,
    path: str,
    encoding: str | None = None,
) -> str:
    """Read the whole file as a string."""
    data = await read_all_bytes(config, path)
    return data.decode(encoding or _DEFAULT_DECODING)


async def write_all_text(
    config: StoreConfiguration,
    text: str,
    encoding: str | None = None,
    path: str | None = None,
) -> str:
    """Write a string to a file.

    The text is written as given: no trailing newline is added. Use
    write_lines for newline-terminated output.

    Returns:
        The path that was written
    """
    return await write_all_bytes(config, text.encode(encoding or DEFAULT_ENCODING), path)


async def read_all_bytes(config: StoreConfiguration, path: str) -> bytes:
    """Read the whole file as bytes."""

    async def _reader(stream: BinaryIO) -> bytes:
        return await run_blocking(stream.read)

    return await read_file(config, _reader, path)


async def write_all_bytes(
    config: StoreConfiguration,
    buffer: bytes,
    path: str | None = None,
) -> str:
    """Write a buffer to a file.

    Returns:
        The path that was written
    """

    async def _writer(stream: BinaryIO) -> None:
        await run_blocking(stream.write, buffer)

    return await create_file(config, _writer, path)
