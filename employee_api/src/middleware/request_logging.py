"""
Request logging middleware for FastAPI.

Logs one structured entry when a request starts and one when it completes
or fails, tagged with a correlation id that is echoed back in the
X-Correlation-ID response header. Optionally dumps request and response
bodies, and records HTTP Prometheus metrics.
"""

import time
import uuid
from typing import Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from shared.logging import bind_context, clear_context
from shared.metrics import ApiMetrics

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Endpoint label for requests no route matched (404s on arbitrary URLs)
UNMATCHED_ENDPOINT = "<unmatched>"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, body dumps and metrics."""

    def __init__(self, app, metrics: Optional[ApiMetrics] = None, log_bodies: bool = False):
        super().__init__(app)
        self.metrics = metrics
        self.log_bodies = log_bodies

    def _endpoint_label(self, request: Request) -> str:
        # Route template keeps metric cardinality bounded (/employee/{id})
        route = request.scope.get("route")
        return getattr(route, "path", UNMATCHED_ENDPOINT)

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        clear_context()
        bind_context(correlation_id=correlation_id)

        if self.metrics is not None:
            self.metrics.http_requests_in_progress.labels(method=method).inc()

        start_time = time.time()
        logger.info("request_started", method=method, path=path, client_ip=client_ip)

        if self.log_bodies:
            request_body = await request.body()
            logger.info("request_body", body=request_body.decode("utf-8", errors="replace"))

        try:
            response = await call_next(request)

            if self.log_bodies:
                response = await self._dump_response(response)

            duration = time.time() - start_time
            endpoint = self._endpoint_label(request)

            if self.metrics is not None:
                self.metrics.http_requests_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=response.status_code
                ).inc()
                self.metrics.http_request_duration_seconds.labels(
                    method=method,
                    endpoint=endpoint
                ).observe(duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s"
            )

            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise

        finally:
            if self.metrics is not None:
                self.metrics.http_requests_in_progress.labels(method=method).dec()
            clear_context()

    async def _dump_response(self, response: Response) -> Response:
        """Read a streamed response body, log it, and return an equivalent response."""
        body = b""
        async for chunk in response.body_iterator:
            body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

        logger.info("response_body", body=body.decode("utf-8", errors="replace"))

        return Response(
            content=body,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
            background=response.background
        )
