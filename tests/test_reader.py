from __future__ import annotations

import anyio
import pytest

from httpbody.reader import MAX_BUFFER_BYTES, BodyReadResult, BodyReadStatus, read_body

pytestmark = pytest.mark.anyio


class FakeStream:
    """In-memory body stream that records every call made to it."""

    def __init__(
        self,
        data: bytes = b"",
        *,
        position: int = 0,
        seekable: bool = True,
        max_chunk: int | None = None,
        fail_after: int | None = None,
        block_after: int | None = None,
    ) -> None:
        self.data = data
        self.position = position
        self._seekable = seekable
        self.max_chunk = max_chunk
        self.fail_after = fail_after
        self.block_after = block_after
        self.calls: list[str] = []
        self.reads = 0

    def seekable(self) -> bool:
        self.calls.append("seekable")
        return self._seekable

    async def tell(self) -> int:
        self.calls.append("tell")
        return self.position

    async def seek(self, position: int) -> int:
        self.calls.append(f"seek:{position}")
        self.position = position
        return position

    async def read(self, size: int = -1) -> bytes:
        self.calls.append(f"read:{size}")
        if self.fail_after is not None and self.reads >= self.fail_after:
            raise ConnectionResetError("connection reset by peer")
        if self.block_after is not None and self.reads >= self.block_after:
            await anyio.sleep_forever()
        self.reads += 1
        if self.max_chunk is not None:
            size = min(size, self.max_chunk)
        chunk = self.data[self.position : self.position + size]
        self.position += len(chunk)
        return chunk


@pytest.mark.parametrize("declared_length", [None, 0])
async def test_read_body_without_declared_length_is_empty_and_leaves_stream_alone(declared_length: int | None):
    stream = FakeStream(b"ignored", position=3)

    result = await read_body(stream, declared_length)

    assert result.status is BodyReadStatus.EMPTY
    assert result.text == ""
    assert stream.calls == []
    assert stream.position == 3


async def test_read_body_returns_unavailable_for_non_seekable_stream():
    stream = FakeStream(b"x" * 50, seekable=False)

    result = await read_body(stream, 50)

    assert result.status is BodyReadStatus.UNAVAILABLE
    assert result.text is None
    assert stream.calls == ["seekable"]


async def test_read_body_reads_whole_body():
    sentence = b"The quick brown fox jumps over the lazy dog while the cat watches from a warm sunny windowsill."
    sentence = sentence.ljust(100, b".")
    stream = FakeStream(sentence)

    result = await read_body(stream, 100)

    assert result.status is BodyReadStatus.TEXT
    assert result.text == sentence.decode()
    assert result.bytes_read == 100
    assert not result.truncated


async def test_read_body_truncates_to_max_bytes():
    stream = FakeStream(b"0123456789" + b"x" * 990)

    result = await read_body(stream, 1000, max_bytes=10)

    assert result.text == "0123456789 [truncated 990 bytes]"
    assert result.bytes_read == 10
    assert result.truncated_bytes == 990


async def test_read_body_with_generous_max_bytes_has_no_suffix():
    stream = FakeStream(b"hello")

    result = await read_body(stream, 5, max_bytes=100)

    assert result.text == "hello"
    assert result.truncated_bytes == 0


async def test_read_body_returns_unavailable_when_too_large_to_buffer():
    stream = FakeStream(b"tiny", position=2)

    result = await read_body(stream, 5_000_000_000)

    assert result.status is BodyReadStatus.UNAVAILABLE
    assert stream.position == 2
    assert stream.calls == ["seekable", "tell", "seek:0", "seek:2"]


async def test_read_body_max_bytes_brings_large_body_under_buffer_limit():
    stream = FakeStream(b"abc")

    result = await read_body(stream, MAX_BUFFER_BYTES + 10, max_bytes=3)

    assert result.text == f"abc [truncated {MAX_BUFFER_BYTES + 7} bytes]"


async def test_read_body_reads_from_start_and_restores_position():
    stream = FakeStream(b"already consumed body", position=21)

    result = await read_body(stream, 21)

    assert result.text == "already consumed body"
    assert stream.position == 21


async def test_read_body_accumulates_partial_reads():
    stream = FakeStream(b"a" * 20, max_chunk=7)

    result = await read_body(stream, 20)

    assert result.text == "a" * 20
    assert [call for call in stream.calls if call.startswith("read")] == ["read:20", "read:13", "read:6"]


async def test_read_body_stops_at_early_end_of_stream():
    stream = FakeStream(b"short")

    result = await read_body(stream, 10)

    assert result.text == "short"
    assert result.bytes_read == 5


async def test_read_body_annotates_early_end_of_stream_when_limited():
    stream = FakeStream(b"short")

    result = await read_body(stream, 10, max_bytes=8)

    assert result.text == "short [truncated 5 bytes]"


async def test_read_body_is_empty_when_stream_has_no_bytes():
    stream = FakeStream(b"", position=0)

    result = await read_body(stream, 10)

    assert result.status is BodyReadStatus.EMPTY
    assert result.text == ""


async def test_read_body_with_zero_max_bytes_is_empty():
    stream = FakeStream(b"body")

    result = await read_body(stream, 4, max_bytes=0)

    assert result.status is BodyReadStatus.EMPTY
    assert stream.position == 0


async def test_read_body_replaces_malformed_utf8():
    stream = FakeStream(b"ok \xff\xfe done")

    result = await read_body(stream, 10)

    assert result.text == "ok \ufffd\ufffd done"


async def test_read_body_propagates_io_errors_after_restoring_position():
    stream = FakeStream(b"x" * 10, position=4, max_chunk=3, fail_after=1)

    with pytest.raises(ConnectionResetError):
        await read_body(stream, 10)

    assert stream.position == 4


async def test_read_body_restores_position_when_cancelled():
    stream = FakeStream(b"x" * 10, position=6, max_chunk=2, block_after=1)

    with anyio.move_on_after(0.05) as scope:
        await read_body(stream, 10)

    assert scope.cancelled_caught
    assert stream.position == 6


@pytest.mark.parametrize(
    ("declared_length", "max_bytes", "match"),
    [
        (-1, None, "declared_length must be non-negative or None"),
        (10, -1, "max_bytes must be non-negative or None"),
    ],
)
async def test_read_body_rejects_negative_arguments(declared_length: int, max_bytes: int | None, match: str):
    with pytest.raises(ValueError, match=match):
        await read_body(FakeStream(b"x"), declared_length, max_bytes)


def test_body_read_result_as_optional():
    assert BodyReadResult.empty().as_optional() == ""
    assert BodyReadResult.unavailable().as_optional() is None
    assert BodyReadResult(BodyReadStatus.TEXT, "body", bytes_read=4).as_optional() == "body"
    assert not BodyReadResult.unavailable().is_available
    assert BodyReadResult.empty().is_empty
