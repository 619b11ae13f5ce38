"""
FastAPI application entry point for the Employee CRUD API.

This module provides the main FastAPI application with:
- Employee CRUD endpoints over the configured storage backend
- Health and readiness endpoints
- Request logging with correlation ids and optional body dumps
- Prometheus metrics
- Uniform storage error to HTTP response mapping
- Graceful startup and shutdown of the backend connection
"""

from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import CONTENT_TYPE_LATEST

from employee_api.src.config import Settings, get_settings
from employee_api.src.dependencies import get_repository
from employee_api.src.middleware.request_logging import RequestLoggingMiddleware
from employee_api.src.models.employee import ErrorResponse
from employee_api.src.repositories import create_repository
from employee_api.src.repositories.base import EmployeeRepository
from employee_api.src.repositories.errors import (
    BackendUnavailable,
    ConstraintViolation,
    EmployeeValidationError,
    InvalidIdentifier,
    NotFound,
    StorageError,
    UnknownStorageError,
)
from employee_api.src.routers import employees_router
from employee_api.src.services.employee_service import EmployeeService
from shared.logging import configure_logging
from shared.metrics import get_metrics_handler, setup_metrics

# Initialize logger
logger = structlog.get_logger(__name__)

# ============================================================================
# Error Mapping
# ============================================================================

STATUS_BY_ERROR = {
    InvalidIdentifier: status.HTTP_400_BAD_REQUEST,
    EmployeeValidationError: HTTPStatus.UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    ConstraintViolation: status.HTTP_409_CONFLICT,
    BackendUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    UnknownStorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for_error(exc: StorageError) -> int:
    """Return the HTTP status for a storage error, 500 for unmapped kinds."""
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(message: str, error_code: str, identifier: Any = None, details: Any = None) -> Dict[str, Any]:
    body = ErrorResponse(
        id=identifier if isinstance(identifier, (int, str)) else None,
        message=message,
        error_code=error_code,
        details=details
    )
    return body.model_dump(exclude_none=True)


# ============================================================================
# Application Factory
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[EmployeeRepository] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (loaded from the environment when omitted)
        repository: Storage adapter to use instead of the configured backend

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name=settings.app_name,
        environment=settings.environment,
    )

    metrics = setup_metrics() if settings.metrics_enabled else None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager for startup and shutdown events.

        Handles:
        - Repository construction and backend connection
        - Service initialization
        - Graceful shutdown and connection release
        """
        logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment,
            storage_backend=settings.storage_backend
        )

        active_repository = repository or create_repository(settings)

        try:
            await active_repository.connect()
        except StorageError as e:
            logger.error("application_startup_failed", error=str(e), exc_info=True)
            # connect() may have opened a pool or client before failing
            await active_repository.close()
            raise

        app.state.repository = active_repository
        app.state.employee_service = EmployeeService(
            active_repository,
            required_fields=settings.required_fields,
            metrics=metrics
        )

        logger.info(
            "application_started",
            app_name=settings.app_name,
            storage_backend=active_repository.backend_name
        )

        try:
            yield
        finally:
            logger.info("application_shutting_down")
            try:
                await active_repository.close()
                logger.info("application_shutdown_complete")
            except Exception as e:
                logger.error("application_shutdown_failed", error=str(e), exc_info=True)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "CRUD API for employees backed by an in-memory store, "
            "MongoDB or PostgreSQL."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = metrics

    # ========================================================================
    # Middleware
    # ========================================================================

    app.add_middleware(
        RequestLoggingMiddleware,
        metrics=metrics,
        log_bodies=settings.log_request_bodies
    )

    # ========================================================================
    # Exception Handlers
    # ========================================================================

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        """Not found answers with a null body."""
        logger.info("employee_not_found", path=request.url.path, employee_id=str(exc.identifier))
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=None)

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        """Map storage errors to HTTP responses."""
        status_code = status_for_error(exc)
        if status_code >= 500:
            logger.error(
                "storage_error",
                path=request.url.path,
                error_code=exc.error_code,
                error=exc.message,
                exc_info=exc
            )
        else:
            logger.warning(
                "request_rejected",
                path=request.url.path,
                error_code=exc.error_code,
                error=exc.message
            )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.message, exc.error_code, exc.identifier)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning(
            "validation_error",
            path=request.url.path,
            errors=exc.errors()
        )
        return JSONResponse(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            content=_error_body(
                "Invalid request body",
                EmployeeValidationError.error_code,
                details=jsonable_encoder(exc.errors())
            )
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning(
            "http_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), "HTTP_ERROR")
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "unexpected_exception",
            path=request.url.path,
            error=str(exc),
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Internal server error", UnknownStorageError.error_code)
        )

    # ========================================================================
    # Health and Readiness Endpoints
    # ========================================================================

    @app.get("/health", tags=["Health"], response_class=JSONResponse)
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns basic health status without checking the backend.
        Use for container health checks.
        """
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    @app.get("/ready", tags=["Health"], response_class=JSONResponse)
    async def readiness_check(active_repository: EmployeeRepository = Depends(get_repository)):
        """
        Readiness check endpoint.

        Pings the storage backend; 503 when it does not answer.
        """
        healthy = await active_repository.ping()

        return JSONResponse(
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if healthy else "not_ready",
                "service": settings.app_name,
                "version": settings.app_version,
                "checks": {"storage": "healthy" if healthy else "unhealthy"},
                "storage_backend": active_repository.backend_name
            }
        )

    # ========================================================================
    # Metrics Endpoint
    # ========================================================================

    if metrics is not None:
        metrics_handler = get_metrics_handler(metrics)

        @app.get(settings.metrics_endpoint, tags=["Monitoring"], include_in_schema=False)
        async def metrics_endpoint() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=metrics_handler(), media_type=CONTENT_TYPE_LATEST)

    # ========================================================================
    # API Router Registration
    # ========================================================================

    app.include_router(employees_router, prefix=settings.api_prefix)

    return app


app = create_app()

# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    """
    Run the application with Uvicorn.
    """
    settings = get_settings()

    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "employee_api.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
