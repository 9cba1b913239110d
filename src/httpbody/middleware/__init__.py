from .body_logging import RequestBodyLoggingMiddleware
from .buffering import BufferingMiddleware

__all__ = ["BufferingMiddleware", "RequestBodyLoggingMiddleware"]
