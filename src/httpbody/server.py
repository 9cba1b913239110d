"""Demo Starlette app that echoes what the body reader sees."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from httpbody.middleware import BufferingMiddleware, RequestBodyLoggingMiddleware
from httpbody.reader import read_request_body
from httpbody.settings import HttpBodySettings
from httpbody.stream import get_body_stream


async def echo(request: Request) -> Response:
    raw_max_bytes = request.query_params.get("max_bytes")
    max_bytes: int | None = None
    if raw_max_bytes is not None:
        if not (raw_max_bytes.isascii() and raw_max_bytes.isdigit()):
            return PlainTextResponse("max_bytes must be a non-negative integer", status_code=400)
        max_bytes = int(raw_max_bytes)

    # Consume the body the way a handler would, leaving the cursor at the end.
    consumed_as = "text"
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            await request.json()
        except ValueError:
            return PlainTextResponse("Invalid JSON body", status_code=400)
        consumed_as = "json"
    consumed = await request.body()

    result = await read_request_body(request, max_bytes)
    stream = get_body_stream(request)
    return JSONResponse(
        {
            "status": result.status.value,
            "text": result.text,
            "bytes_read": result.bytes_read,
            "truncated_bytes": result.truncated_bytes,
            "consumed_as": consumed_as,
            "consumed_bytes": len(consumed),
            "position": await stream.tell() if stream is not None else None,
        }
    )


def create_app(settings: HttpBodySettings | None = None) -> Starlette:
    settings = settings or HttpBodySettings()
    return Starlette(
        routes=[Route("/echo", endpoint=echo, methods=["GET", "POST", "PUT", "PATCH", "DELETE"])],
        middleware=[
            Middleware(BufferingMiddleware, settings=settings),
            Middleware(RequestBodyLoggingMiddleware, settings=settings),
        ],
    )
