"""Local filesystem-based file store."""

import contextlib
import os
import shutil
import tempfile
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from typing import Any, BinaryIO, TypeVar

from cloudfs_core import paths as store_paths
from cloudfs_core.exceptions import (
    DirectoryNotEmptyError,
    InvalidPathError,
    NotFoundError,
    StoreError,
    TransientIOError,
    TypeMismatchError,
)
from cloudfs_core.observability import get_logger, timed_operation
from cloudfs_core.protocols.file_store import Writer
from cloudfs_core.utils import run_blocking

R = TypeVar("R")

# In-flight writes are staged next to their target under this naming scheme
_STAGING_PREFIX = ".cloudfs-"
_STAGING_SUFFIX = ".partial"

logger = get_logger(__name__)


def _is_staging(name: str) -> bool:
    return name.startswith(_STAGING_PREFIX) and name.endswith(_STAGING_SUFFIX)


@contextlib.contextmanager
def _translate_os_errors(path: str) -> Iterator[None]:
    """Map OSError subclasses onto the store error kinds."""
    try:
        yield
    except StoreError:
        raise
    except FileNotFoundError as e:
        raise NotFoundError(f"No such file or directory: {path}", path=path) from e
    except (IsADirectoryError, NotADirectoryError, FileExistsError) as e:
        raise TypeMismatchError(f"Unexpected file type at {path}", path=path) from e
    except OSError as e:
        raise TransientIOError(f"I/O error on {path}: {e}", path=path) from e


def _sync(stream: BinaryIO) -> None:
    stream.flush()
    os.fsync(stream.fileno())


class LocalFileStore:
    """File store using the local filesystem.

    Store paths are posix-style and rooted at ``/``, which maps onto the
    base directory. Writes are staged in a hidden file beside the target and
    renamed into place, so a failed or cancelled writer leaves nothing behind.
    Deleting a missing file is a no-op.
    """

    name = "local"

    def __init__(self, path: str | None = None, **kwargs: Any) -> None:
        """Initialize local file store.

        Args:
            path: Base directory for file storage. Defaults to ./data/store
            **kwargs: Ignored (for compatibility with other backends)
        """
        self.base_path = (Path(path) if path else Path("./data/store")).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.id = f"local:{self.base_path.as_posix()}"

    # Path operations

    def get_root_directory(self) -> str:
        return store_paths.ROOT

    def create_unique_directory_path(self) -> str:
        return store_paths.combine([store_paths.ROOT, store_paths.unique_token()])

    def try_get_full_path(self, path: str) -> str | None:
        return store_paths.normalize(path)

    def get_directory_name(self, path: str) -> str:
        return store_paths.get_directory_name(self._full_path(path))

    def get_file_name(self, path: str) -> str:
        return store_paths.get_file_name(path)

    def combine(self, paths: Sequence[str]) -> str:
        return store_paths.combine(paths)

    def _full_path(self, path: str) -> str:
        full = self.try_get_full_path(path)
        if full is None:
            raise InvalidPathError(f"Invalid path: {path!r}", path=path)
        return full

    def _get_path(self, path: str) -> Path:
        """Get the filesystem path for a store path.

        Rejects paths that leave the base directory, including through
        symlinks.
        """
        full = self._full_path(path)
        target = self.base_path.joinpath(*store_paths.segments(full))

        try:
            target.resolve().relative_to(self.base_path)
        except ValueError:
            raise InvalidPathError(f"Path escapes the store root: {path}", path=path) from None

        return target

    def _to_store_path(self, target: Path) -> str:
        relative = target.relative_to(self.base_path).as_posix()
        return store_paths.combine([store_paths.ROOT, relative])

    # File/directory operations

    async def file_exists(self, path: str) -> bool:
        target = self._get_path(path)
        with _translate_os_errors(path):
            return await run_blocking(target.is_file)

    async def get_file_size(self, path: str) -> int:
        target = self._get_path(path)

        def _size() -> int:
            if target.is_dir():
                raise TypeMismatchError(f"Path is a directory: {path}", path=path)
            return target.stat().st_size

        with _translate_os_errors(path):
            return await run_blocking(_size)

    async def enumerate_files(self, directory: str) -> list[str]:
        return await self._enumerate(directory, Path.is_file)

    async def enumerate_directories(self, directory: str) -> list[str]:
        return await self._enumerate(directory, Path.is_dir)

    async def _enumerate(self, directory: str, predicate: Callable[[Path], bool]) -> list[str]:
        target = self._get_path(directory)

        def _list() -> list[str]:
            if not target.exists():
                raise NotFoundError(f"Directory not found: {directory}", path=directory)
            if not target.is_dir():
                raise TypeMismatchError(f"Path is a file: {directory}", path=directory)
            return sorted(
                self._to_store_path(child)
                for child in target.iterdir()
                if predicate(child) and not _is_staging(child.name)
            )

        with _translate_os_errors(directory):
            return await run_blocking(_list)

    async def delete_file(self, path: str) -> None:
        target = self._get_path(path)

        def _delete() -> None:
            if target.is_dir():
                raise TypeMismatchError(f"Path is a directory: {path}", path=path)
            target.unlink(missing_ok=True)

        with _translate_os_errors(path):
            await run_blocking(_delete)
        logger.debug("File deleted", operation="delete_file", path=path)

    async def directory_exists(self, directory: str) -> bool:
        target = self._get_path(directory)
        with _translate_os_errors(directory):
            return await run_blocking(target.is_dir)

    async def create_directory(self, directory: str) -> None:
        target = self._get_path(directory)
        with _translate_os_errors(directory):
            await run_blocking(lambda: target.mkdir(parents=True, exist_ok=True))
        logger.debug("Directory created", operation="create_directory", path=directory)

    async def delete_directory(self, directory: str, recursive: bool = False) -> None:
        if store_paths.is_root(self._full_path(directory)):
            raise InvalidPathError("Cannot delete the root directory", path=directory)
        target = self._get_path(directory)

        def _delete() -> None:
            if not target.exists():
                raise NotFoundError(f"Directory not found: {directory}", path=directory)
            if not target.is_dir():
                raise TypeMismatchError(f"Path is a file: {directory}", path=directory)
            if recursive:
                shutil.rmtree(target)
                return
            if any(target.iterdir()):
                raise DirectoryNotEmptyError(f"Directory not empty: {directory}", path=directory)
            target.rmdir()

        with _translate_os_errors(directory):
            await run_blocking(_delete)
        logger.debug(
            "Directory deleted",
            operation="delete_directory",
            path=directory,
            recursive=recursive,
        )

    # Read/write operations

    async def write(self, path: str, writer: Writer[R]) -> R:
        target = self._get_path(path)

        def _open_staging() -> tuple[BinaryIO, Path]:
            if target.is_dir():
                raise TypeMismatchError(f"Path is a directory: {path}", path=path)
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, staging = tempfile.mkstemp(
                prefix=_STAGING_PREFIX,
                suffix=_STAGING_SUFFIX,
                dir=target.parent,
            )
            return os.fdopen(fd, "w+b"), Path(staging)

        with timed_operation(logger, "write", path, self.name):
            with _translate_os_errors(path):
                stream, staging = await run_blocking(_open_staging)

            try:
                with stream:
                    result = await writer(stream)
                    # Writers may close the stream themselves, which flushes it
                    if not stream.closed:
                        with _translate_os_errors(path):
                            await run_blocking(_sync, stream)
                with _translate_os_errors(path):
                    await run_blocking(os.replace, staging, target)
            except BaseException:
                # Also reached on cancellation; the unlink stays synchronous
                with contextlib.suppress(OSError):
                    staging.unlink(missing_ok=True)
                raise

        return result

    async def begin_read(self, path: str) -> BinaryIO:
        target = self._get_path(path)

        def _open() -> BinaryIO:
            if target.is_dir():
                raise TypeMismatchError(f"Path is a directory: {path}", path=path)
            return target.open("rb")

        with _translate_os_errors(path):
            return await run_blocking(_open)

    async def of_stream(self, source: BinaryIO, target: str) -> None:
        async def _copy(stream: BinaryIO) -> None:
            await run_blocking(shutil.copyfileobj, source, stream)

        await self.write(target, _copy)

    async def to_stream(self, source_file: str, target: BinaryIO) -> None:
        source = self._get_path(source_file)

        def _copy() -> None:
            if source.is_dir():
                raise TypeMismatchError(f"Path is a directory: {source_file}", path=source_file)
            with source.open("rb") as f:
                shutil.copyfileobj(f, target)

        with _translate_os_errors(source_file):
            await run_blocking(_copy)
