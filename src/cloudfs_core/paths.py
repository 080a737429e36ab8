"""Pure path functions shared by the bundled stores.

Paths are posix-style strings separated by ``/``. Nothing in this module
touches a backend.
"""

import base64
import posixpath
import secrets
import uuid
from collections.abc import Sequence

from cloudfs_core.exceptions import InvalidPathError

SEPARATOR = "/"
ROOT = "/"

# Characters no bundled store accepts in a path
_FORBIDDEN = ("\x00", "\\")


def combine(paths: Sequence[str]) -> str:
    """Join path segments left to right.

    A segment starting with the separator restarts the path, so
    ``combine([combine([a, b]), c]) == combine([a, b, c])``.
    """
    if not paths:
        return ""
    return posixpath.join(*paths)


def get_file_name(path: str) -> str:
    """Return the final segment of a path, ignoring trailing separators."""
    stripped = path.rstrip(SEPARATOR)
    return posixpath.basename(stripped)


def get_directory_name(path: str) -> str:
    """Return the parent directory of a path.

    Raises:
        InvalidPathError: If the path is the root or has no parent segment
    """
    stripped = path.rstrip(SEPARATOR)
    if not stripped:
        raise InvalidPathError("Root directory has no parent", path=path)

    parent = posixpath.dirname(stripped)
    if not parent:
        raise InvalidPathError(f"Path has no parent directory: {path}", path=path)

    # dirname keeps trailing separators of "a//b" style input
    return parent.rstrip(SEPARATOR) or ROOT


def segments(path: str) -> list[str]:
    """Split a path into its non-empty segments."""
    return [s for s in path.split(SEPARATOR) if s and s != "."]


def normalize(path: str) -> str | None:
    """Normalize a path to its absolute form under the root.

    Relative paths resolve against the root. Returns None when the path is
    empty, contains forbidden characters, or ``..`` escapes the root.
    """
    if not path or any(c in path for c in _FORBIDDEN):
        return None

    stack: list[str] = []
    for segment in segments(path):
        if segment == "..":
            if not stack:
                return None
            stack.pop()
        else:
            stack.append(segment)

    return ROOT + SEPARATOR.join(stack)


def is_root(path: str) -> bool:
    """Check whether a normalized path denotes the root."""
    return path == ROOT


def random_file_name() -> str:
    """Generate a random 8.3 style file name, e.g. ``k3jd0qwe.x1z``.

    Not collision-free; use unique_token() where uniqueness matters.
    """
    token = base64.b32encode(secrets.token_bytes(10)).decode("ascii").lower()
    return f"{token[:8]}.{token[8:11]}"


def unique_token() -> str:
    """Generate a token that does not collide with any other generated token."""
    return uuid.uuid4().hex
