"""Read a request body as text without moving the stream cursor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import anyio
from anyio.lowlevel import checkpoint_if_cancelled
from starlette.requests import Request

from httpbody.stream import BodyStream, RequestStream, get_body_stream
from httpbody.utilities.logging import get_logger

logger = get_logger(__name__)

# Largest buffer a 32-bit signed length can address.
MAX_BUFFER_BYTES = 2**31 - 1


class BodyReadStatus(str, Enum):
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"
    TEXT = "text"


@dataclass(frozen=True)
class BodyReadResult:
    """Outcome of a body read.

    ``EMPTY`` means there was no body to read, ``UNAVAILABLE`` means the body
    exists but could not be buffered safely (non-seekable stream or oversized
    body), and ``TEXT`` carries the decoded body.
    """

    status: BodyReadStatus
    text: str | None = None
    bytes_read: int = 0
    truncated_bytes: int = 0

    @classmethod
    def empty(cls) -> BodyReadResult:
        return cls(BodyReadStatus.EMPTY, "")

    @classmethod
    def unavailable(cls) -> BodyReadResult:
        return cls(BodyReadStatus.UNAVAILABLE)

    @property
    def is_empty(self) -> bool:
        return self.status is BodyReadStatus.EMPTY

    @property
    def is_available(self) -> bool:
        return self.status is not BodyReadStatus.UNAVAILABLE

    @property
    def truncated(self) -> bool:
        return self.truncated_bytes > 0

    def as_optional(self) -> str | None:
        """Collapse to ``""`` / ``None`` / text."""
        return self.text


def truncation_notice(omitted: int) -> str:
    return f" [truncated {omitted} bytes]"


async def read_body(
    stream: BodyStream,
    declared_length: int | None,
    max_bytes: int | None = None,
) -> BodyReadResult:
    """Read up to ``declared_length`` bytes from the start of ``stream`` as UTF-8.

    The stream is rewound to position 0 before reading, because the host
    framework may already have consumed part of it. Its original position is
    restored on every exit path, including errors and cancellation.

    Args:
        stream: seekable body stream
        declared_length: the announced body size, usually the Content-Length
        max_bytes: optional cap on the number of bytes buffered; when the body
            is longer, the text is suffixed with `` [truncated N bytes]``

    Returns:
        an ``EMPTY`` result for a missing or zero-length body, ``UNAVAILABLE``
        when the stream cannot be rewound or the body is too large to buffer,
        ``TEXT`` otherwise.

    Errors raised by the stream while reading propagate after the position
    is restored.
    """
    if declared_length is not None and declared_length < 0:
        raise ValueError("declared_length must be non-negative or None")
    if max_bytes is not None and max_bytes < 0:
        raise ValueError("max_bytes must be non-negative or None")

    if not declared_length:
        return BodyReadResult.empty()

    if not stream.seekable():
        logger.debug("Body stream is not seekable; skipping body read")
        return BodyReadResult.unavailable()

    original_pos = await stream.tell()
    await stream.seek(0)

    try:
        to_read = min(declared_length, max_bytes) if max_bytes is not None else declared_length

        if to_read > MAX_BUFFER_BYTES:
            logger.debug("Body of %d bytes is too large to buffer", to_read)
            return BodyReadResult.unavailable()

        buffer = bytearray(to_read)
        view = memoryview(buffer)
        try:
            read_total = 0
            while read_total < to_read:
                await checkpoint_if_cancelled()
                chunk = await stream.read(to_read - read_total)
                if not chunk:
                    break
                view[read_total : read_total + len(chunk)] = chunk
                read_total += len(chunk)

            if read_total == 0:
                return BodyReadResult.empty()

            text = bytes(view[:read_total]).decode("utf-8", errors="replace")
        finally:
            view.release()

        truncated = 0
        if max_bytes is not None and declared_length > read_total:
            truncated = declared_length - read_total
            text += truncation_notice(truncated)

        logger.debug("Read %d body bytes (%d truncated)", read_total, truncated)
        return BodyReadResult(BodyReadStatus.TEXT, text, bytes_read=read_total, truncated_bytes=truncated)
    finally:
        with anyio.CancelScope(shield=True):
            await stream.seek(original_pos)


def declared_content_length(request: Request) -> int | None:
    """Parse the Content-Length header; missing or invalid values count as absent."""
    content_length = request.headers.get("content-length")
    if content_length is None or not (content_length.isascii() and content_length.isdigit()):
        return None
    return int(content_length)


async def read_request_body(request: Request, max_bytes: int | None = None) -> BodyReadResult:
    """Read ``request``'s body as text, leaving its buffered stream where it was.

    The body must have been buffered by ``BufferingMiddleware``; otherwise the
    request body is a one-shot stream and the result is ``UNAVAILABLE``.
    """
    stream: BodyStream | None = get_body_stream(request)
    if stream is None:
        stream = RequestStream()
    return await read_body(stream, declared_content_length(request), max_bytes)


async def read_request_body_text(request: Request, max_bytes: int | None = None) -> str | None:
    """Like ``read_request_body`` but returns ``""``, ``None`` or the body text."""
    result = await read_request_body(request, max_bytes)
    return result.as_optional()
