from .exceptions import BodyNotBufferedError, BodyTooLargeError, HttpBodyError
from .middleware import BufferingMiddleware, RequestBodyLoggingMiddleware
from .reader import (
    MAX_BUFFER_BYTES,
    BodyReadResult,
    BodyReadStatus,
    read_body,
    read_request_body,
    read_request_body_text,
)
from .settings import HttpBodySettings
from .stream import BodyStream, RequestStream, SpooledBody, get_body_stream

__all__ = [
    "MAX_BUFFER_BYTES",
    "BodyNotBufferedError",
    "BodyReadResult",
    "BodyReadStatus",
    "BodyStream",
    "BodyTooLargeError",
    "BufferingMiddleware",
    "HttpBodyError",
    "HttpBodySettings",
    "RequestBodyLoggingMiddleware",
    "RequestStream",
    "SpooledBody",
    "get_body_stream",
    "read_body",
    "read_request_body",
    "read_request_body_text",
]
