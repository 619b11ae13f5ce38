"""FastAPI middleware components.

This package contains custom middleware for request/response processing
and logging.
"""

from employee_api.src.middleware.request_logging import (
    CORRELATION_HEADER,
    RequestLoggingMiddleware,
)

__all__ = [
    "CORRELATION_HEADER",
    "RequestLoggingMiddleware",
]
