from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from httpbody.reader import BodyReadStatus, declared_content_length, read_request_body
from httpbody.settings import HttpBodySettings
from httpbody.utilities.logging import get_logger

logger = get_logger(__name__)


class RequestBodyLoggingMiddleware(BaseHTTPMiddleware):
    """Log the body of each request before handing it to the app.

    Install it inside ``BufferingMiddleware``; without buffering, bodies are
    logged as ``<unavailable>`` and left unread.
    """

    def __init__(self, app: ASGIApp, settings: HttpBodySettings | None = None):
        super().__init__(app)
        self.settings = settings or HttpBodySettings()
        self.methods = {method.upper() for method in self.settings.log_methods}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method in self.methods:
            result = await read_request_body(request, self.settings.log_max_bytes)
            if result.status is BodyReadStatus.UNAVAILABLE:
                logger.debug("%s %s body=<unavailable>", request.method, request.url.path)
            elif result.status is BodyReadStatus.EMPTY:
                declared_length = declared_content_length(request)
                if declared_length:
                    logger.info("%s %s body=<omitted %d bytes>", request.method, request.url.path, declared_length)
                else:
                    logger.info("%s %s body=<empty>", request.method, request.url.path)
            else:
                logger.info("%s %s body=%s", request.method, request.url.path, result.text)

        return await call_next(request)
