"""ASGI application serving a file store over HTTP."""

from starlette.applications import Starlette
from starlette.middleware import Middleware

from cloudfs_core.config import Config, build_store_configuration, setup_logging
from cloudfs_core.observability import get_logger
from cloudfs_core.protocols import CloudFileStore
from cloudfs_core.server.middleware import BearerTokenMiddleware
from cloudfs_core.server.routes import create_routes

logger = get_logger(__name__)


def create_app(store: CloudFileStore, token: str | None = None) -> Starlette:
    """Create the ASGI application.

    Args:
        store: The store to expose
        token: Optional bearer token required on every route but /health

    Returns:
        Starlette application
    """
    middleware = []
    if token:
        middleware.append(
            Middleware(BearerTokenMiddleware, token=token, public_paths=["/health"])
        )

    return Starlette(routes=create_routes(store), middleware=middleware)


def create_app_from_config(config: Config) -> Starlette:
    """Create the application for the store a Config describes."""
    store_config = build_store_configuration(config)
    return create_app(store_config.file_store, token=config.server.token)


def serve(
    config: Config,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Start the HTTP store server.

    Args:
        config: Configuration naming the backing store
        host: Host to bind to (defaults to config value)
        port: Port to bind to (defaults to config value)
    """
    import uvicorn

    setup_logging(config)
    app = create_app_from_config(config)
    logger.info(
        "Starting store server",
        backend=config.files.backend,
        authenticated=bool(config.server.token),
    )
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
    )
