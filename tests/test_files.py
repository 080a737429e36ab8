"""Tests for the configuration-level file operations."""

import io
import re
import threading
from typing import BinaryIO

import pytest

from cloudfs_core import files
from cloudfs_core.backends.files.local import LocalFileStore
from cloudfs_core.backends.files.memory import MemoryFileStore
from cloudfs_core.caching import TTLCache
from cloudfs_core.configuration import StoreConfiguration
from cloudfs_core.exceptions import NotFoundError
from cloudfs_core.serializers import JsonSerializer

RANDOM_NAME = re.compile(r"[a-z2-7]{8}\.[a-z2-7]{3}")


@pytest.fixture
def config(store) -> StoreConfiguration:
    """Configuration over every bundled backend."""
    return StoreConfiguration(
        file_store=store,
        default_directory=store.combine([store.get_root_directory(), "work"]),
        cache=TTLCache(ttl_seconds=60),
        serializer=JsonSerializer(),
    )


class TestText:
    """Tests for text helpers."""

    @pytest.mark.asyncio
    async def test_hello(self, config: StoreConfiguration) -> None:
        """Text written to a file reads back unchanged."""
        path = files.combine(config, config.default_directory, "hello.txt")

        assert await files.write_all_text(config, "hello", path=path) == path
        assert await files.read_all_text(config, path) == "hello"
        assert await files.get_file_size(config, path) == 5

    @pytest.mark.asyncio
    async def test_text_written_verbatim(self, config: StoreConfiguration) -> None:
        """No terminator is appended to written text."""
        path = await files.write_all_text(config, "no newline")

        assert await files.read_all_bytes(config, path) == b"no newline"

    @pytest.mark.asyncio
    async def test_default_encoding_is_utf8(self, config: StoreConfiguration) -> None:
        """Text defaults to UTF-8."""
        path = await files.write_all_text(config, "café")

        assert await files.read_all_bytes(config, path) == "café".encode("utf-8")
        assert await files.read_all_text(config, path) == "café"

    @pytest.mark.asyncio
    async def test_explicit_encoding(self, config: StoreConfiguration) -> None:
        """An explicit encoding is used both ways."""
        path = await files.write_all_text(config, "café", encoding="latin-1")

        assert await files.read_all_bytes(config, path) == b"caf\xe9"
        assert await files.read_all_text(config, path, encoding="latin-1") == "café"

    @pytest.mark.asyncio
    async def test_byte_order_mark_skipped(self, config: StoreConfiguration) -> None:
        """A UTF-8 byte order mark is not part of the text."""
        path = await files.write_all_bytes(config, b"\xef\xbb\xbfhi\nthere")

        assert await files.read_all_text(config, path) == "hi\nthere"
        assert await files.read_lines(config, path) == ["hi", "there"]


class TestLines:
    """Tests for line helpers."""

    @pytest.mark.asyncio
    async def test_write_lines(self, config: StoreConfiguration) -> None:
        """Each line is terminated with a newline."""
        path = await files.write_lines(config, ["a", "b"])

        assert await files.read_all_bytes(config, path) == b"a\nb\n"
        assert await files.read_lines(config, path) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_write_lines_from_generator(self, config: StoreConfiguration) -> None:
        """Any iterable of lines is accepted."""
        path = await files.write_lines(config, (str(i) for i in range(3)))

        assert await files.read_lines(config, path) == ["0", "1", "2"]

    @pytest.mark.asyncio
    async def test_mixed_terminators(self, config: StoreConfiguration) -> None:
        """All common line terminators are recognized."""
        path = await files.write_all_bytes(config, b"a\r\nb\rc\nd")

        assert await files.read_lines(config, path) == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_empty_file(self, config: StoreConfiguration) -> None:
        """An empty file has no lines."""
        path = await files.write_all_bytes(config, b"")

        assert await files.read_lines(config, path) == []

    @pytest.mark.asyncio
    async def test_empty_lines_kept(self, config: StoreConfiguration) -> None:
        """Blank lines survive a round trip."""
        path = await files.write_lines(config, ["", "x", ""])

        assert await files.read_lines(config, path) == ["", "x", ""]


class TestDefaults:
    """Tests for optional path defaults."""

    @pytest.mark.asyncio
    async def test_file_defaults_to_default_directory(self, config: StoreConfiguration) -> None:
        """Files without a path land in the default directory."""
        path = await files.write_all_bytes(config, b"x")

        assert files.get_directory_name(config, path) == config.default_directory
        assert RANDOM_NAME.fullmatch(files.get_file_name(config, path))
        assert await files.enumerate_files(config, config.default_directory) == [path]

    @pytest.mark.asyncio
    async def test_create_file(self, config: StoreConfiguration) -> None:
        """create_file returns the path the writer wrote."""

        async def _writer(stream: BinaryIO) -> None:
            stream.write(b"payload")

        path = await files.create_file(config, _writer)

        assert await files.file_exists(config, path)

    @pytest.mark.asyncio
    async def test_create_file_in(self, config: StoreConfiguration) -> None:
        """create_file_in writes to directory plus name."""

        async def _writer(stream: BinaryIO) -> None:
            stream.write(b"payload")

        directory = files.combine(config, files.get_file_store(config).get_root_directory(), "in")
        path = await files.create_file_in(config, _writer, directory, "a.bin")

        assert path == files.combine(config, directory, "a.bin")
        assert await files.read_all_bytes(config, path) == b"payload"

    @pytest.mark.asyncio
    async def test_enumeration_defaults_to_root(self, config: StoreConfiguration) -> None:
        """Enumeration without a directory lists the root."""
        fs = files.get_file_store(config)
        root = fs.get_root_directory()
        top = files.combine(config, root, "top.txt")
        await files.write_all_text(config, "x", path=top)
        await files.write_all_text(config, "y")

        assert await files.enumerate_files(config) == [top]
        assert await files.enumerate_directories(config) == [config.default_directory]
        assert await files.enumerate_root_directories(config) == [config.default_directory]

    @pytest.mark.asyncio
    async def test_create_directory_defaults_to_unique(self, config: StoreConfiguration) -> None:
        """Directories created without a path get a unique one."""
        first = await files.create_directory(config)
        second = await files.create_directory(config)

        assert first != second
        assert await files.directory_exists(config, first)
        assert await files.directory_exists(config, second)

    @pytest.mark.asyncio
    async def test_random_file_path_in_directory(self, config: StoreConfiguration) -> None:
        """Random file paths can target any directory."""
        directory = files.create_unique_directory_path(config)
        path = files.get_random_file_path(config, directory)

        assert files.get_directory_name(config, path) == directory
        assert not await files.directory_exists(config, directory)


class TestOperations:
    """Tests for the remaining passthrough operations."""

    def test_combine_all(self, config: StoreConfiguration) -> None:
        """Each name is prefixed with the directory."""
        directory = config.default_directory

        assert files.combine_all(config, directory, ["a", "b"]) == [
            files.combine(config, directory, "a"),
            files.combine(config, directory, "b"),
        ]
        assert files.combine_all(config, directory, []) == []

    @pytest.mark.asyncio
    async def test_delete(self, config: StoreConfiguration) -> None:
        """Files and directories can be deleted."""
        path = await files.write_all_text(config, "x")

        await files.delete_file(config, path)
        assert not await files.file_exists(config, path)

        await files.delete_directory(config, config.default_directory)
        assert not await files.directory_exists(config, config.default_directory)

    @pytest.mark.asyncio
    async def test_recursive_delete(self, config: StoreConfiguration) -> None:
        """Recursive deletion removes contents."""
        await files.write_all_text(config, "x")

        await files.delete_directory(config, config.default_directory, recursive=True)

        assert not await files.directory_exists(config, config.default_directory)

    @pytest.mark.asyncio
    async def test_read_file_closes_stream_on_error(self, config: StoreConfiguration) -> None:
        """The read stream is closed when the deserializer fails."""
        path = await files.write_all_text(config, "x")
        seen: list[BinaryIO] = []

        async def _reader(stream: BinaryIO) -> None:
            seen.append(stream)
            raise ValueError("bad data")

        with pytest.raises(ValueError):
            await files.read_file(config, _reader, path)

        assert seen[0].closed

    @pytest.mark.asyncio
    async def test_read_missing(self, config: StoreConfiguration) -> None:
        """Reading a missing file fails with NotFoundError."""
        missing = files.combine(config, config.default_directory, "missing.txt")

        with pytest.raises(NotFoundError):
            await files.read_all_text(config, missing)


class _RecordingStream(io.BytesIO):
    """BytesIO noting the thread of every read and write."""

    threads: list[int]

    def read(self, size: int | None = -1) -> bytes:
        self.threads.append(threading.get_ident())
        return super().read(size)

    def read1(self, size: int = -1) -> bytes:
        self.threads.append(threading.get_ident())
        return super().read1(size)

    def write(self, data) -> int:
        self.threads.append(threading.get_ident())
        return super().write(data)


class _RecordingStore(MemoryFileStore):
    """Memory store handing out recording streams."""

    def __init__(self) -> None:
        super().__init__(store_id="memory:recording")
        self.threads: list[int] = []

    def _stream(self, data: bytes = b"") -> _RecordingStream:
        stream = _RecordingStream(data)
        stream.threads = self.threads
        return stream

    async def begin_read(self, path: str) -> BinaryIO:
        source = await super().begin_read(path)
        return self._stream(source.getvalue())

    async def write(self, path: str, writer):
        async def _record(stream: BinaryIO):
            recording = self._stream()
            result = await writer(recording)
            stream.write(recording.getvalue())
            return result

        return await super().write(path, _record)


class TestBlockingIO:
    """Stream access made by the helpers happens off the event loop."""

    @pytest.mark.asyncio
    async def test_helpers_use_io_pool(self) -> None:
        """No helper reads or writes a stream on the event loop thread."""
        store = _RecordingStore()
        config = StoreConfiguration(
            file_store=store,
            default_directory="memory://work",
            cache=TTLCache(ttl_seconds=60),
            serializer=JsonSerializer(),
        )
        loop_thread = threading.get_ident()

        text = await files.write_all_text(config, "hello")
        lines = await files.write_lines(config, ["a", "b"])
        raw = await files.write_all_bytes(config, b"\x00\x01")

        assert await files.read_all_text(config, text) == "hello"
        assert await files.read_lines(config, lines) == ["a", "b"]
        assert await files.read_all_bytes(config, raw) == b"\x00\x01"
        assert store.threads
        assert loop_thread not in store.threads

    @pytest.mark.asyncio
    async def test_local_reads_use_io_pool(
        self, local_store: LocalFileStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Reading a file on disk does not block the event loop."""
        config = StoreConfiguration(
            file_store=local_store,
            default_directory="/work",
            cache=TTLCache(ttl_seconds=60),
            serializer=JsonSerializer(),
        )
        path = await files.write_all_bytes(config, b"payload")
        reader_threads: list[int] = []
        begin_read = local_store.begin_read

        class _RecordingReader(io.BufferedReader):
            def read(self, size: int | None = -1) -> bytes:
                reader_threads.append(threading.get_ident())
                return super().read(size)

        async def _begin_read(path: str) -> BinaryIO:
            stream = await begin_read(path)
            return _RecordingReader(stream.detach())

        monkeypatch.setattr(local_store, "begin_read", _begin_read)

        assert await files.read_all_bytes(config, path) == b"payload"
        assert reader_threads
        assert threading.get_ident() not in reader_threads
