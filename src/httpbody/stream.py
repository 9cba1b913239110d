"""Position-aware request body streams."""

from __future__ import annotations

import io
import os
import tempfile
from types import TracebackType
from typing import Protocol

import anyio
from starlette.requests import Request

from httpbody.exceptions import BodyNotBufferedError

DEFAULT_SPOOL_MAX_SIZE = 1_048_576
BODY_STREAM_SCOPE_KEY = "httpbody.body_stream"


class BodyStream(Protocol):
    """A byte stream that a request body can be read from.

    Only streams that report ``seekable()`` are read by ``read_body``; the
    position methods may raise ``io.UnsupportedOperation`` on the others.
    """

    def seekable(self) -> bool: ...

    async def tell(self) -> int: ...

    async def seek(self, position: int) -> int: ...

    async def read(self, size: int = -1) -> bytes: ...


class SpooledBody:
    """Seekable body buffer kept in memory up to ``max_size`` bytes, on disk beyond.

    File operations run in a worker thread through ``anyio.wrap_file`` so a
    body that has rolled over to disk never blocks the event loop.
    """

    def __init__(self, max_size: int = DEFAULT_SPOOL_MAX_SIZE) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._file = anyio.wrap_file(tempfile.SpooledTemporaryFile(max_size=max_size))
        self._length = 0

    @classmethod
    async def from_bytes(cls, data: bytes, *, max_size: int = DEFAULT_SPOOL_MAX_SIZE) -> SpooledBody:
        body = cls(max_size=max_size)
        await body.write(data)
        await body.seek(0)
        return body

    @property
    def length(self) -> int:
        """Number of bytes written to the buffer."""
        return self._length

    @property
    def closed(self) -> bool:
        return self._file.wrapped.closed

    def seekable(self) -> bool:
        return not self.closed

    async def tell(self) -> int:
        return await self._file.tell()

    async def seek(self, position: int) -> int:
        if position < 0:
            raise ValueError(f"negative seek position {position}")
        return await self._file.seek(position, os.SEEK_SET)

    async def read(self, size: int = -1) -> bytes:
        return await self._file.read(size)

    async def write(self, data: bytes) -> int:
        written = await self._file.write(data)
        self._length = max(self._length, await self._file.tell())
        return written

    async def aclose(self) -> None:
        await self._file.aclose()

    async def __aenter__(self) -> SpooledBody:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


class RequestStream:
    """Stand-in for an ASGI request body that was not buffered.

    The raw body can only be consumed once, by the app, so it reports itself
    as non-seekable and refuses every read.
    """

    def seekable(self) -> bool:
        return False

    async def tell(self) -> int:
        raise io.UnsupportedOperation("request stream is not seekable")

    async def seek(self, position: int) -> int:
        raise io.UnsupportedOperation("request stream is not seekable")

    async def read(self, size: int = -1) -> bytes:
        raise io.UnsupportedOperation("request stream was not buffered")


def get_body_stream(request: Request, *, require: bool = False) -> SpooledBody | None:
    """Return the buffered body stream installed by BufferingMiddleware, if any."""
    stream = request.scope.get(BODY_STREAM_SCOPE_KEY)
    if stream is None and require:
        raise BodyNotBufferedError("Request body was not buffered; add BufferingMiddleware to the app")
    return stream
