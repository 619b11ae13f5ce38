"""
Employee router.

Provides REST API endpoints for:
- Listing employees
- Reading, creating, updating and deleting a single employee

Identifiers arrive as raw path strings and are validated by the service
for the active backend before any storage call. Storage errors are turned
into HTTP responses by the exception handlers registered in main.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import PlainTextResponse

from employee_api.src.dependencies import get_employee_service
from employee_api.src.models.employee import Employee, EmployeeIn, ErrorResponse, OperationResponse
from employee_api.src.services.employee_service import EmployeeService

logger = structlog.get_logger(__name__)

router = APIRouter(
    tags=["Employees"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid Identifier"},
        422: {"model": ErrorResponse, "description": "Validation Error"},
        500: {"model": ErrorResponse, "description": "Storage Error"},
        503: {"model": ErrorResponse, "description": "Backend Unavailable"},
    }
)


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def home() -> str:
    """Welcome message."""
    return "Welcome to the Employee CRUD API!"


@router.get(
    "/employees",
    response_model=List[Employee],
    response_model_exclude_none=True,
    summary="List Employees"
)
async def list_employees(
    service: EmployeeService = Depends(get_employee_service)
) -> List[Employee]:
    """Return every employee; an empty list when none are stored."""
    return await service.list_employees()


@router.get(
    "/employee/{employee_id}",
    response_model=Employee,
    response_model_exclude_none=True,
    summary="Get Employee",
    responses={404: {"description": "Employee not found (null body)"}}
)
async def get_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service)
) -> Employee:
    """Return one employee by identifier."""
    return await service.get_employee(employee_id)


@router.post(
    "/employee",
    response_model=Employee,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create Employee"
)
async def create_employee(
    payload: Optional[EmployeeIn] = Body(None),
    service: EmployeeService = Depends(get_employee_service)
) -> Employee:
    """
    Create an employee.

    Every field is optional; the response carries the assigned identifier.
    """
    return await service.create_employee(payload or EmployeeIn())


@router.put(
    "/employee/{employee_id}",
    response_model=OperationResponse,
    response_model_exclude_none=True,
    summary="Update Employee"
)
async def update_employee(
    employee_id: str,
    payload: Optional[EmployeeIn] = Body(None),
    service: EmployeeService = Depends(get_employee_service)
) -> OperationResponse:
    """
    Apply the supplied fields to an employee.

    Fields missing from the body keep their stored value. The response
    reports matched and modified counts; a zero match is not an error.
    """
    result = await service.update_employee(employee_id, payload or EmployeeIn())
    return OperationResponse(
        id=service.public_identifier(employee_id),
        message=(
            "Employee updated successfully. "
            f"Records matched: {result.matched_count}, modified: {result.modified_count}"
        ),
        matched_count=result.matched_count,
        modified_count=result.modified_count
    )


@router.delete(
    "/employee/{employee_id}",
    response_model=OperationResponse,
    response_model_exclude_none=True,
    summary="Delete Employee"
)
async def delete_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service)
) -> OperationResponse:
    """
    Delete an employee.

    Always answers 200; deleted_count is 0 when nothing had this identifier.
    """
    result = await service.delete_employee(employee_id)
    public_id = service.public_identifier(employee_id)
    return OperationResponse(
        id=public_id,
        message=f"Employee with ID {public_id} deleted. Records removed: {result.deleted_count}",
        deleted_count=result.deleted_count
    )
