"""HTTP route handlers exposing a CloudFileStore.

Wire paths are posix-style and rooted at ``/`` whatever the backing store's
own path convention is; StorePathMapper translates between the two.
"""

import functools
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import BinaryIO

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Route

from cloudfs_core import paths as store_paths
from cloudfs_core.exceptions import (
    DirectoryNotEmptyError,
    InvalidPathError,
    NotFoundError,
    StoreError,
    TransientIOError,
    TypeMismatchError,
)
from cloudfs_core.observability import get_logger
from cloudfs_core.protocols import CloudFileStore

CHUNK_SIZE = 64 * 1024

ERROR_KINDS: list[tuple[type[StoreError], int, str]] = [
    (NotFoundError, 404, "not_found"),
    (InvalidPathError, 400, "invalid_path"),
    (TypeMismatchError, 409, "type_mismatch"),
    (DirectoryNotEmptyError, 409, "directory_not_empty"),
    (TransientIOError, 503, "transient_io"),
]

logger = get_logger(__name__)


class StorePathMapper:
    """Translates wire paths to a backing store's paths and back."""

    def __init__(self, store: CloudFileStore) -> None:
        self.store = store
        root = store.get_root_directory()
        self.root = store.try_get_full_path(root) or root

    def to_store(self, wire_path: str) -> str:
        full = store_paths.normalize(wire_path)
        if full is None:
            raise InvalidPathError(f"Invalid path: {wire_path!r}", path=wire_path)
        parts = store_paths.segments(full)
        return self.store.combine([self.root, *parts]) if parts else self.root

    def to_wire(self, store_path: str) -> str:
        full = self.store.try_get_full_path(store_path) or store_path
        if not full.startswith(self.root):
            raise InvalidPathError(f"Path outside the store root: {store_path}", path=store_path)
        relative = full[len(self.root):].strip(store_paths.SEPARATOR)
        return store_paths.combine([store_paths.ROOT, relative])


def error_response(error: StoreError) -> JSONResponse:
    """Build the JSON error response for a store error."""
    for kind, status_code, name in ERROR_KINDS:
        if isinstance(error, kind):
            return JSONResponse({"error": name, "message": str(error)}, status_code=status_code)
    return JSONResponse({"error": "store_error", "message": str(error)}, status_code=500)


def handle_store_errors(
    handler: Callable[[Request], Awaitable[Response]],
) -> Callable[[Request], Awaitable[Response]]:
    """Decorator turning store errors raised by a handler into JSON responses."""

    @functools.wraps(handler)
    async def wrapper(request: Request) -> Response:
        try:
            return await handler(request)
        except StoreError as e:
            logger.debug(
                "Store request failed",
                path=e.path,
                route=request.url.path,
                error=type(e).__name__,
            )
            return error_response(e)

    return wrapper


def _path_param(request: Request) -> str:
    path = request.query_params.get("path")
    if not path:
        raise InvalidPathError("Missing required query parameter: path")
    return path


def _bool_param(request: Request, name: str) -> bool:
    return request.query_params.get(name, "false").lower() in ("1", "true", "yes")


def create_routes(store: CloudFileStore) -> list[Route]:
    """Create HTTP routes for a store.

    Args:
        store: The backing store

    Returns:
        List of Starlette routes
    """
    mapper = StorePathMapper(store)

    async def health(request: Request) -> Response:
        """Health check endpoint."""
        return JSONResponse({"status": "ok", "timestamp": time.time()})

    async def info(request: Request) -> Response:
        """Identity of the backing store."""
        return JSONResponse({"name": store.name, "id": store.id})

    @handle_store_errors
    async def file_exists(request: Request) -> Response:
        path = mapper.to_store(_path_param(request))
        return JSONResponse({"exists": await store.file_exists(path)})

    @handle_store_errors
    async def file_size(request: Request) -> Response:
        path = mapper.to_store(_path_param(request))
        return JSONResponse({"size": await store.get_file_size(path)})

    @handle_store_errors
    async def list_files(request: Request) -> Response:
        directory = mapper.to_store(_path_param(request))
        files = await store.enumerate_files(directory)
        return JSONResponse({"paths": [mapper.to_wire(p) for p in files]})

    @handle_store_errors
    async def delete_file(request: Request) -> Response:
        await store.delete_file(mapper.to_store(_path_param(request)))
        return Response(status_code=204)

    @handle_store_errors
    async def directory_exists(request: Request) -> Response:
        directory = mapper.to_store(_path_param(request))
        return JSONResponse({"exists": await store.directory_exists(directory)})

    @handle_store_errors
    async def list_directories(request: Request) -> Response:
        directory = mapper.to_store(_path_param(request))
        directories = await store.enumerate_directories(directory)
        return JSONResponse({"paths": [mapper.to_wire(p) for p in directories]})

    @handle_store_errors
    async def create_directory(request: Request) -> Response:
        await store.create_directory(mapper.to_store(_path_param(request)))
        return Response(status_code=204)

    @handle_store_errors
    async def delete_directory(request: Request) -> Response:
        directory = mapper.to_store(_path_param(request))
        await store.delete_directory(directory, recursive=_bool_param(request, "recursive"))
        return Response(status_code=204)

    @handle_store_errors
    async def upload(request: Request) -> Response:
        """Write the request body to a file. Commits only a complete body."""
        path = mapper.to_store(_path_param(request))

        async def _writer(stream: BinaryIO) -> int:
            size = 0
            async for chunk in request.stream():
                await run_in_threadpool(stream.write, chunk)
                size += len(chunk)
            return size

        size = await store.write(path, _writer)
        return JSONResponse({"size": size})

    @handle_store_errors
    async def download(request: Request) -> Response:
        """Stream a file's contents."""
        stream = await store.begin_read(mapper.to_store(_path_param(request)))

        async def _body() -> AsyncIterator[bytes]:
            try:
                while chunk := await run_in_threadpool(stream.read, CHUNK_SIZE):
                    yield chunk
            finally:
                stream.close()

        return StreamingResponse(_body(), media_type="application/octet-stream")

    return [
        Route("/health", health, methods=["GET"]),
        Route("/info", info, methods=["GET"]),
        Route("/files", delete_file, methods=["DELETE"]),
        Route("/files/exists", file_exists, methods=["GET"]),
        Route("/files/size", file_size, methods=["GET"]),
        Route("/files/list", list_files, methods=["GET"]),
        Route("/files/content", download, methods=["GET"]),
        Route("/files/content", upload, methods=["PUT"]),
        Route("/directories", create_directory, methods=["POST"]),
        Route("/directories", delete_directory, methods=["DELETE"]),
        Route("/directories/exists", directory_exists, methods=["GET"]),
        Route("/directories/list", list_directories, methods=["GET"]),
    ]
