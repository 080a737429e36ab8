"""HTTP server exposing a file store."""

from cloudfs_core.server.app import create_app, create_app_from_config, serve

__all__ = ["create_app", "create_app_from_config", "serve"]
