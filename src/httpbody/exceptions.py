"""Custom exceptions for httpbody."""

from __future__ import annotations

from dataclasses import dataclass


class HttpBodyError(Exception):
    """Base error for httpbody."""


@dataclass(frozen=True)
class BodyTooLargeError(HttpBodyError):
    max_body_bytes: int

    def __str__(self) -> str:
        return f"Request body exceeds max_body_bytes={self.max_body_bytes}"


class BodyNotBufferedError(HttpBodyError):
    """The request body was not buffered by BufferingMiddleware."""
