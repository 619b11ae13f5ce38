"""
FastAPI dependency injection for the repository and the employee service.

Both are built once during application startup and stored on app.state;
these dependencies hand them to the endpoints.
"""

import structlog
from fastapi import Request

from employee_api.src.repositories.base import EmployeeRepository
from employee_api.src.services.employee_service import EmployeeService

logger = structlog.get_logger(__name__)


def get_repository(request: Request) -> EmployeeRepository:
    """
    Get the active employee repository.

    Raises:
        RuntimeError: If the application has not finished startup
    """
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        logger.error("repository_not_initialized")
        raise RuntimeError("Repository not initialized. Is the application lifespan running?")
    return repository


def get_employee_service(request: Request) -> EmployeeService:
    """
    Get the employee service.

    Example:
        @router.get("/employees")
        async def list_employees(service: EmployeeService = Depends(get_employee_service)):
            return await service.list_employees()
    """
    service = getattr(request.app.state, "employee_service", None)
    if service is None:
        logger.error("employee_service_not_initialized")
        raise RuntimeError("Employee service not initialized. Is the application lifespan running?")
    return service
