"""Serializer protocol for value/byte-stream codecs."""

from typing import Any, BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class Serializer(Protocol):
    """Protocol for serializers carried by a store configuration."""

    name: str

    def serialize(self, value: Any, stream: BinaryIO) -> None:
        """Write a value to a binary stream."""
        ...

    def deserialize(self, stream: BinaryIO) -> Any:
        """Read a value from a binary stream."""
        ...
