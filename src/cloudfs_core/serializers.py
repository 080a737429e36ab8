"""Bundled serializers.

Registered under the ``cloudfs_core.serializers`` entry point group.
"""

import io
import json
import pickle
from typing import Any, BinaryIO


class JsonSerializer:
    """UTF-8 JSON serializer for plain data values."""

    name = "json"

    def __init__(self, indent: int | None = None, **kwargs: Any) -> None:
        """Initialize JSON serializer.

        Args:
            indent: Indentation passed to json.dump
            **kwargs: Ignored (for compatibility with other serializers)
        """
        self.indent = indent

    def serialize(self, value: Any, stream: BinaryIO) -> None:
        """Write a value as JSON."""
        text = io.TextIOWrapper(stream, encoding="utf-8", newline="")
        try:
            json.dump(value, text, ensure_ascii=False, indent=self.indent)
            text.flush()
        finally:
            # Leave the underlying stream open for its owner
            text.detach()

    def deserialize(self, stream: BinaryIO) -> Any:
        """Read a JSON value."""
        return json.load(stream)


class PickleSerializer:
    """Pickle serializer for arbitrary Python objects.

    Only deserialize data written by a trusted party.
    """

    name = "pickle"

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL, **kwargs: Any) -> None:
        """Initialize pickle serializer.

        Args:
            protocol: Pickle protocol version
            **kwargs: Ignored (for compatibility with other serializers)
        """
        self.protocol = protocol

    def serialize(self, value: Any, stream: BinaryIO) -> None:
        """Pickle a value into the stream."""
        pickle.dump(value, stream, protocol=self.protocol)

    def deserialize(self, stream: BinaryIO) -> Any:
        """Unpickle a value from the stream."""
        return pickle.load(stream)
