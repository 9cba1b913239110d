"""ASGI middleware that makes request bodies seekable."""

from __future__ import annotations

import anyio
from starlette.requests import ClientDisconnect, Request
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from httpbody.exceptions import BodyTooLargeError
from httpbody.reader import declared_content_length
from httpbody.settings import HttpBodySettings
from httpbody.stream import BODY_STREAM_SCOPE_KEY, SpooledBody
from httpbody.utilities.logging import get_logger

logger = get_logger(__name__)


class BufferingMiddleware:
    """Buffer each HTTP request body into a seekable ``SpooledBody``.

    The buffered stream is stored in the scope (see ``get_body_stream``) and the
    body is replayed to the wrapped app from that stream, so whatever the app
    consumes advances the stream's cursor. Bodies above ``max_body_bytes`` are
    rejected with 413 before the app is called.
    """

    def __init__(self, app: ASGIApp, settings: HttpBodySettings | None = None):
        self.app = app
        self.settings = settings or HttpBodySettings()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        body = SpooledBody(max_size=self.settings.spool_max_size)
        try:
            try:
                await self._buffer(request, body)
            except BodyTooLargeError as e:
                logger.info("Rejecting %s %s: %s", request.method, request.url.path, e)
                response = PlainTextResponse(str(e), status_code=413)
                await response(scope, receive, send)
                return
            except ClientDisconnect:
                logger.debug("Client disconnected while buffering request body")
                return

            await body.seek(0)
            scope[BODY_STREAM_SCOPE_KEY] = body
            await self.app(scope, self._replay(body, receive), send)
        finally:
            scope.pop(BODY_STREAM_SCOPE_KEY, None)
            with anyio.CancelScope(shield=True):
                await body.aclose()

    async def _buffer(self, request: Request, body: SpooledBody) -> None:
        max_body_bytes = self.settings.max_body_bytes

        # Fast-path: reject based on Content-Length when provided.
        if max_body_bytes is not None:
            content_length = declared_content_length(request)
            if content_length is not None and content_length > max_body_bytes:
                raise BodyTooLargeError(max_body_bytes)

        async for chunk in request.stream():
            if not chunk:
                continue
            # Never buffer more than max_body_bytes bytes.
            if max_body_bytes is not None and body.length + len(chunk) > max_body_bytes:
                raise BodyTooLargeError(max_body_bytes)
            await body.write(chunk)

        logger.debug("Buffered %d request body bytes", body.length)

    def _replay(self, body: SpooledBody, receive: Receive) -> Receive:
        replayed = False

        async def replay_receive() -> Message:
            nonlocal replayed
            if replayed:
                # Body fully delivered; only disconnects are left on the wire.
                return await receive()

            chunk = await body.read(self.settings.chunk_size)
            more_body = await body.tell() < body.length
            if not more_body:
                replayed = True
            return {"type": "http.request", "body": chunk, "more_body": more_body}

        return replay_receive
