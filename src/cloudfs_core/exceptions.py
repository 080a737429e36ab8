"""cloudfs-core exceptions."""


class CloudFsError(Exception):
    """Base exception for cloudfs-core."""

    pass


class ConfigError(CloudFsError):
    """Configuration error."""

    pass


class StoreError(CloudFsError):
    """A file store operation failed.

    Carries the store path the operation referenced, when there is one.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class NotFoundError(StoreError):
    """File or directory does not exist."""

    pass


class InvalidPathError(StoreError):
    """Path cannot be normalized into the store's namespace."""

    pass


class TypeMismatchError(StoreError):
    """Expected a file but found a directory, or vice versa."""

    pass


class DirectoryNotEmptyError(StoreError):
    """Non-recursive delete of a directory that has contents."""

    pass


class TransientIOError(StoreError):
    """Backend unreachable, timed out, or returned a retriable fault."""

    pass
