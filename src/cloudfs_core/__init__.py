"""cloudfs-core - One file store contract over local, in-memory and remote backends."""

from cloudfs_core.caching import TTLCache
from cloudfs_core.config import Config, build_store_configuration
from cloudfs_core.configuration import StoreConfiguration
from cloudfs_core.context import ExecutionContext, current_configuration, current_file_store
from cloudfs_core.exceptions import (
    CloudFsError,
    ConfigError,
    DirectoryNotEmptyError,
    InvalidPathError,
    NotFoundError,
    StoreError,
    TransientIOError,
    TypeMismatchError,
)
from cloudfs_core.observability import (
    LogLevel,
    StructuredLogger,
    configure_logging,
    get_logger,
    register_metric_callback,
    timed_operation,
)
from cloudfs_core.protocols import Cache, CloudFileStore, Serializer, StoreIdentity
from cloudfs_core.serializers import JsonSerializer, PickleSerializer

__version__ = "0.1.0"
__all__ = [
    # Core
    "Cache",
    "CloudFileStore",
    "Config",
    "Serializer",
    "StoreConfiguration",
    "StoreIdentity",
    "build_store_configuration",
    # Execution context
    "ExecutionContext",
    "current_configuration",
    "current_file_store",
    # Capabilities
    "JsonSerializer",
    "PickleSerializer",
    "TTLCache",
    # Errors
    "CloudFsError",
    "ConfigError",
    "DirectoryNotEmptyError",
    "InvalidPathError",
    "NotFoundError",
    "StoreError",
    "TransientIOError",
    "TypeMismatchError",
    # Observability
    "LogLevel",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "register_metric_callback",
    "timed_operation",
]
