"""In-memory file store with URI-style paths."""

import asyncio
import io
import posixpath
import shutil
import uuid
from collections.abc import Sequence
from typing import Any, BinaryIO, TypeVar

from cloudfs_core import paths as store_paths
from cloudfs_core.exceptions import (
    DirectoryNotEmptyError,
    InvalidPathError,
    NotFoundError,
    TypeMismatchError,
)
from cloudfs_core.observability import get_logger, timed_operation
from cloudfs_core.protocols.file_store import Writer
from cloudfs_core.utils import run_blocking

R = TypeVar("R")

SCHEME = "memory://"

logger = get_logger(__name__)


class _WriteBuffer(io.BytesIO):
    """BytesIO that keeps its contents after being closed."""

    contents = b""

    def close(self) -> None:
        if not self.closed:
            self.contents = self.getvalue()
        super().close()


class MemoryFileStore:
    """In-memory file store.

    Paths look like ``memory://dir/file.txt`` with ``memory://`` as the root;
    anything without the scheme is rejected. Suitable for development and
    testing. Data is lost on restart. Deleting a missing file is a no-op.
    """

    name = "memory"

    def __init__(self, store_id: str | None = None, **kwargs: Any) -> None:
        """Initialize memory file store.

        Args:
            store_id: Stable identifier. Defaults to a random one per instance.
            **kwargs: Ignored (for compatibility with other backends)
        """
        self.id = store_id or f"memory:{uuid.uuid4().hex}"
        # Both keyed by normalized posix path, e.g. "/dir/file.txt"
        self._files: dict[str, bytes] = {}
        self._directories: set[str] = {store_paths.ROOT}
        self._lock = asyncio.Lock()

    def _key(self, path: str) -> str | None:
        if not path.startswith(SCHEME):
            return None
        return store_paths.normalize(path[len(SCHEME):] or store_paths.ROOT)

    def _require_key(self, path: str) -> str:
        key = self._key(path)
        if key is None:
            raise InvalidPathError(f"Invalid path: {path!r}", path=path)
        return key

    def _external(self, key: str) -> str:
        return SCHEME + key[1:]

    # Path operations

    def get_root_directory(self) -> str:
        return SCHEME

    def create_unique_directory_path(self) -> str:
        return self.combine([SCHEME, store_paths.unique_token()])

    def try_get_full_path(self, path: str) -> str | None:
        key = self._key(path)
        return self._external(key) if key is not None else None

    def get_directory_name(self, path: str) -> str:
        key = self._require_key(path)
        try:
            return self._external(store_paths.get_directory_name(key))
        except InvalidPathError:
            raise InvalidPathError("Root directory has no parent", path=path) from None

    def get_file_name(self, path: str) -> str:
        return store_paths.get_file_name(self._require_key(path))

    def combine(self, paths: Sequence[str]) -> str:
        """Join segments left to right.

        Only a segment carrying the scheme restarts the path. Leading
        separators on later segments are dropped, so the result stays inside
        the store's namespace.
        """
        combined = ""
        for segment in paths:
            if not combined or segment.startswith(SCHEME):
                combined = segment
            else:
                combined = posixpath.join(combined, segment.lstrip(store_paths.SEPARATOR))
        return combined

    # Helpers below expect the lock to be held

    def _parent(self, key: str) -> str:
        return store_paths.get_directory_name(key)

    def _ensure_directories(self, key: str, path: str) -> None:
        parts = store_paths.segments(key)
        for i in range(1, len(parts) + 1):
            current = store_paths.ROOT + store_paths.SEPARATOR.join(parts[:i])
            if current in self._files:
                raise TypeMismatchError(f"Path is a file: {self._external(current)}", path=path)
            self._directories.add(current)

    def _check_directory(self, key: str, path: str) -> None:
        if key in self._directories:
            return
        if key in self._files:
            raise TypeMismatchError(f"Path is a file: {path}", path=path)
        raise NotFoundError(f"Directory not found: {path}", path=path)

    # File/directory operations

    async def file_exists(self, path: str) -> bool:
        key = self._require_key(path)
        async with self._lock:
            return key in self._files

    async def get_file_size(self, path: str) -> int:
        key = self._require_key(path)
        async with self._lock:
            if key in self._directories:
                raise TypeMismatchError(f"Path is a directory: {path}", path=path)
            if key not in self._files:
                raise NotFoundError(f"File not found: {path}", path=path)
            return len(self._files[key])

    async def enumerate_files(self, directory: str) -> list[str]:
        key = self._require_key(directory)
        async with self._lock:
            self._check_directory(key, directory)
            return sorted(
                self._external(k) for k in self._files if self._parent(k) == key
            )

    async def enumerate_directories(self, directory: str) -> list[str]:
        key = self._require_key(directory)
        async with self._lock:
            self._check_directory(key, directory)
            return sorted(
                self._external(k)
                for k in self._directories
                if not store_paths.is_root(k) and self._parent(k) == key
            )

    async def delete_file(self, path: str) -> None:
        key = self._require_key(path)
        async with self._lock:
            if key in self._directories:
                raise TypeMismatchError(f"Path is a directory: {path}", path=path)
            self._files.pop(key, None)

    async def directory_exists(self, directory: str) -> bool:
        key = self._require_key(directory)
        async with self._lock:
            return key in self._directories

    async def create_directory(self, directory: str) -> None:
        key = self._require_key(directory)
        async with self._lock:
            self._ensure_directories(key, directory)

    async def delete_directory(self, directory: str, recursive: bool = False) -> None:
        key = self._require_key(directory)
        if store_paths.is_root(key):
            raise InvalidPathError("Cannot delete the root directory", path=directory)

        prefix = key + store_paths.SEPARATOR
        async with self._lock:
            self._check_directory(key, directory)
            files = [k for k in self._files if k.startswith(prefix)]
            directories = [k for k in self._directories if k.startswith(prefix)]
            if (files or directories) and not recursive:
                raise DirectoryNotEmptyError(f"Directory not empty: {directory}", path=directory)
            for k in files:
                del self._files[k]
            for k in directories:
                self._directories.discard(k)
            self._directories.discard(key)
        logger.debug(
            "Directory deleted",
            operation="delete_directory",
            path=directory,
            recursive=recursive,
        )

    # Read/write operations

    async def write(self, path: str, writer: Writer[R]) -> R:
        key = self._require_key(path)
        if store_paths.is_root(key):
            raise TypeMismatchError("Path is a directory", path=path)

        with timed_operation(logger, "write", path, self.name):
            buffer = _WriteBuffer()
            with buffer:
                result = await writer(buffer)
            # Nothing is visible until the writer has returned
            async with self._lock:
                if key in self._directories:
                    raise TypeMismatchError(f"Path is a directory: {path}", path=path)
                self._ensure_directories(self._parent(key), path)
                self._files[key] = buffer.contents

        return result

    async def begin_read(self, path: str) -> BinaryIO:
        key = self._require_key(path)
        async with self._lock:
            if key in self._directories:
                raise TypeMismatchError(f"Path is a directory: {path}", path=path)
            if key not in self._files:
                raise NotFoundError(f"File not found: {path}", path=path)
            return io.BytesIO(self._files[key])

    async def of_stream(self, source: BinaryIO, target: str) -> None:
        async def _copy(stream: BinaryIO) -> None:
            await run_blocking(shutil.copyfileobj, source, stream)

        await self.write(target, _copy)

    async def to_stream(self, source_file: str, target: BinaryIO) -> None:
        key = self._require_key(source_file)
        async with self._lock:
            if key in self._directories:
                raise TypeMismatchError(f"Path is a directory: {source_file}", path=source_file)
            if key not in self._files:
                raise NotFoundError(f"File not found: {source_file}", path=source_file)
            data = self._files[key]
        await run_blocking(target.write, data)

    async def clear(self) -> None:
        """Clear all data. Useful for testing."""
        async with self._lock:
            self._files.clear()
            self._directories = {store_paths.ROOT}
