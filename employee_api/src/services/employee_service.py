"""
Employee service for backend-agnostic CRUD orchestration.

Handles:
- Identifier validation before any backend call
- Optional required-field checks on create
- Delegation to the configured repository
- Storage metrics and mutation logging

The service holds one repository for its whole lifetime and keeps no
request state of its own. Update and delete never turn a zero count into
an error: the counts are returned for the caller to report.
"""

import time
from typing import Any, Awaitable, Iterable, List, Optional, TypeVar

import structlog

from employee_api.src.models.employee import Employee, EmployeeId, EmployeeIn
from employee_api.src.repositories.base import DeleteResult, EmployeeRepository, UpdateResult
from employee_api.src.repositories.errors import EmployeeValidationError, StorageError
from shared.metrics import ApiMetrics

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class EmployeeService:
    """Service for employee CRUD operations."""

    def __init__(
        self,
        repository: EmployeeRepository,
        required_fields: Iterable[str] = (),
        metrics: Optional[ApiMetrics] = None,
    ):
        """
        Initialize employee service.

        Args:
            repository: Storage adapter used for every operation
            required_fields: Fields that must be supplied on create
            metrics: Prometheus metrics (optional)
        """
        self.repository = repository
        self.required_fields = tuple(required_fields)
        self.metrics = metrics

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a repository call and record its outcome."""
        backend = self.repository.backend_name
        start_time = time.perf_counter()
        outcome = "ok"
        try:
            return await awaitable
        except StorageError as e:
            outcome = e.error_code.lower()
            raise
        except Exception:
            outcome = "error"
            raise
        finally:
            if self.metrics is not None:
                self.metrics.storage_operations_total.labels(
                    backend=backend, operation=operation, outcome=outcome
                ).inc()
                self.metrics.storage_operation_duration_seconds.labels(
                    backend=backend, operation=operation
                ).observe(time.perf_counter() - start_time)

    def parse_identifier(self, raw_id: str) -> Any:
        """
        Validate a path identifier for the active backend.

        Raises:
            InvalidIdentifier: If the identifier is malformed
        """
        return self.repository.parse_identifier(raw_id)

    def public_identifier(self, raw_id: str) -> EmployeeId:
        """Normalise a path identifier into the form used in response bodies."""
        return self.repository.format_identifier(self.parse_identifier(raw_id))

    async def create_employee(self, payload: EmployeeIn) -> Employee:
        """
        Create an employee.

        Args:
            payload: Inbound employee; unsupplied fields are not stored

        Returns:
            Employee with its assigned identifier

        Raises:
            EmployeeValidationError: If a configured required field is missing
        """
        fields = payload.to_fields()

        missing = [name for name in self.required_fields if name not in fields]
        if missing:
            logger.warning("employee_create_rejected", missing_fields=missing)
            raise EmployeeValidationError(f"Missing required fields: {', '.join(missing)}")

        employee_id = await self._call("create", self.repository.create(fields))
        logger.info("employee_created", employee_id=str(employee_id), fields=sorted(fields))
        return Employee(id=employee_id, **fields)

    async def get_employee(self, raw_id: str) -> Employee:
        """
        Get employee by identifier.

        Raises:
            InvalidIdentifier: If raw_id is malformed (backend is not called)
            NotFound: If no employee has this identifier
        """
        employee_id = self.parse_identifier(raw_id)
        return await self._call("find_by_id", self.repository.find_by_id(employee_id))

    async def list_employees(self) -> List[Employee]:
        """List every employee; empty when none are stored."""
        return await self._call("find_all", self.repository.find_all())

    async def update_employee(self, raw_id: str, patch: EmployeeIn) -> UpdateResult:
        """
        Apply the supplied fields of patch to an employee.

        Returns:
            Raw matched/modified counts; matched_count is 0 when nothing has
            this identifier

        Raises:
            InvalidIdentifier: If raw_id is malformed (backend is not called)
        """
        employee_id = self.parse_identifier(raw_id)
        fields = patch.to_fields()
        result = await self._call("update_by_id", self.repository.update_by_id(employee_id, fields))
        logger.info(
            "employee_updated",
            employee_id=str(employee_id),
            fields=sorted(fields),
            matched_count=result.matched_count,
            modified_count=result.modified_count
        )
        return result

    async def delete_employee(self, raw_id: str) -> DeleteResult:
        """
        Delete an employee.

        Returns:
            Raw deleted count; 0 when nothing had this identifier

        Raises:
            InvalidIdentifier: If raw_id is malformed (backend is not called)
        """
        employee_id = self.parse_identifier(raw_id)
        result = await self._call("delete_by_id", self.repository.delete_by_id(employee_id))
        logger.info("employee_deleted", employee_id=str(employee_id), deleted_count=result.deleted_count)
        return result
