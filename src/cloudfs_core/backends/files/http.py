"""Remote file store backed by the cloudfs HTTP server."""

import contextlib
import os
import shutil
import tempfile
from collections.abc import AsyncIterator, Sequence
from typing import Any, BinaryIO, TypeVar

import httpx

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
from cloudfs_core.protocols.file_store import StoreIdentity, Writer
from cloudfs_core.utils import run_blocking

R = TypeVar("R")

CHUNK_SIZE = 64 * 1024

ERROR_KINDS: dict[str, type[StoreError]] = {
    "not_found": NotFoundError,
    "invalid_path": InvalidPathError,
    "type_mismatch": TypeMismatchError,
    "directory_not_empty": DirectoryNotEmptyError,
    "transient_io": TransientIOError,
}

logger = get_logger(__name__)


async def _iter_file(f: BinaryIO) -> AsyncIterator[bytes]:
    while chunk := await run_blocking(f.read, CHUNK_SIZE):
        yield chunk


def _open_spool() -> tuple[BinaryIO, str]:
    fd, name = tempfile.mkstemp(prefix=".cloudfs-", suffix=".upload")
    return os.fdopen(fd, "w+b"), name


def _discard(name: str) -> None:
    with contextlib.suppress(OSError):
        os.unlink(name)


class HttpFileStore:
    """File store talking to a remote store server over HTTP.

    Paths are posix-style and rooted at ``/``. Writes are spooled to a local
    temporary file and uploaded only once the writer has returned; the
    server commits the upload atomically. Reads are downloaded to a local
    temporary file before the stream is handed out.
    """

    name = "http"

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        store_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize HTTP file store.

        Args:
            url: Base URL of the store server
            token: Bearer token for the server
            timeout: Request timeout in seconds
            client: Preconfigured client, used instead of url and timeout
            store_id: Stable identifier. Defaults to one derived from the URL.
            **kwargs: Ignored (for compatibility with other backends)
        """
        if client is None and not url:
            raise ValueError("HttpFileStore requires url or client")

        self._client = client or httpx.AsyncClient(base_url=url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.id = store_id or f"http:{self._client.base_url}"

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "HttpFileStore":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

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

    # Transport

    def _raise_for_error(self, response: httpx.Response, path: str) -> None:
        if response.is_success:
            return

        try:
            body = response.json()
        except ValueError:
            body = {}
        kind = body.get("error") if isinstance(body, dict) else None
        message = (body.get("message") if isinstance(body, dict) else None) or response.text

        if kind in ERROR_KINDS:
            raise ERROR_KINDS[kind](message, path=path)
        if response.status_code >= 500:
            raise TransientIOError(
                f"Server error {response.status_code} for {path}: {message}", path=path
            )
        raise StoreError(f"Request failed with {response.status_code} for {path}: {message}", path=path)

    async def _request(
        self,
        method: str,
        route: str,
        path: str,
        params: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        query = {"path": self._full_path(path), **(params or {})}
        try:
            response = await self._client.request(
                method, route, params=query, headers=self._headers, **kwargs
            )
        except httpx.TransportError as e:
            raise TransientIOError(f"Store server unreachable: {e}", path=path) from e

        self._raise_for_error(response, path)
        return response

    async def info(self) -> StoreIdentity:
        """Return the identity of the server's backing store."""
        try:
            response = await self._client.get("/info", headers=self._headers)
        except httpx.TransportError as e:
            raise TransientIOError(f"Store server unreachable: {e}") from e
        self._raise_for_error(response, "/")
        data = response.json()
        return StoreIdentity(name=data["name"], id=data["id"])

    # File/directory operations

    async def file_exists(self, path: str) -> bool:
        response = await self._request("GET", "/files/exists", path)
        return bool(response.json()["exists"])

    async def get_file_size(self, path: str) -> int:
        response = await self._request("GET", "/files/size", path)
        return int(response.json()["size"])

    async def enumerate_files(self, directory: str) -> list[str]:
        response = await self._request("GET", "/files/list", directory)
        return list(response.json()["paths"])

    async def delete_file(self, path: str) -> None:
        await self._request("DELETE", "/files", path)

    async def directory_exists(self, directory: str) -> bool:
        response = await self._request("GET", "/directories/exists", directory)
        return bool(response.json()["exists"])

    async def create_directory(self, directory: str) -> None:
        await self._request("POST", "/directories", directory)

    async def delete_directory(self, directory: str, recursive: bool = False) -> None:
        await self._request(
            "DELETE",
            "/directories",
            directory,
            params={"recursive": "true" if recursive else "false"},
        )

    async def enumerate_directories(self, directory: str) -> list[str]:
        response = await self._request("GET", "/directories/list", directory)
        return list(response.json()["paths"])

    # Read/write operations

    async def write(self, path: str, writer: Writer[R]) -> R:
        self._full_path(path)
        spool, staging = await run_blocking(_open_spool)
        try:
            with timed_operation(logger, "write", path, self.name):
                with spool:
                    result = await writer(spool)
                    if not spool.closed:
                        await run_blocking(spool.flush)
                # Reopen by name; writers may have closed the stream
                upload = await run_blocking(open, staging, "rb")
                with upload:
                    await self._request("PUT", "/files/content", path, content=_iter_file(upload))
        except BaseException:
            # Also reached on cancellation; the unlink stays synchronous
            _discard(staging)
            raise

        await run_blocking(_discard, staging)
        return result

    async def begin_read(self, path: str) -> BinaryIO:
        spool = await run_blocking(tempfile.TemporaryFile)
        try:
            await self._download(path, spool)
            await run_blocking(spool.seek, 0)
        except BaseException:
            spool.close()
            raise
        return spool

    async def _download(self, path: str, target: BinaryIO) -> None:
        query = {"path": self._full_path(path)}
        try:
            async with self._client.stream(
                "GET", "/files/content", params=query, headers=self._headers
            ) as response:
                if not response.is_success:
                    await response.aread()
                    self._raise_for_error(response, path)
                async for chunk in response.aiter_bytes():
                    await run_blocking(target.write, chunk)
        except httpx.TransportError as e:
            raise TransientIOError(f"Store server unreachable: {e}", path=path) from e

    async def of_stream(self, source: BinaryIO, target: str) -> None:
        async def _copy(stream: BinaryIO) -> None:
            await run_blocking(shutil.copyfileobj, source, stream)

        await self.write(target, _copy)

    async def to_stream(self, source_file: str, target: BinaryIO) -> None:
        await self._download(source_file, target)
