"""Data models for the FastAPI service.

This package contains Pydantic models for request/response validation
and the Employee entity shared by routers, services and repositories.
"""

from employee_api.src.models.employee import (
    EmployeeIn,
    Employee,
    EmployeeId,
    OperationResponse,
    ErrorResponse,
)

__all__ = [
    "EmployeeIn",
    "Employee",
    "EmployeeId",
    "OperationResponse",
    "ErrorResponse",
]
