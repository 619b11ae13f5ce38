"""
Abstract employee repository.

Defines the operation set every storage backend implements: identifier
parsing, connection lifecycle, and the five CRUD operations. Update and
delete report raw counts instead of a boolean so that "no match" and
"matched but unchanged" stay distinguishable across backends.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, TypeVar

import structlog

from employee_api.src.models.employee import Employee, EmployeeId
from employee_api.src.repositories.errors import BackendUnavailable

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class UpdateResult:
    """Counts reported by an update."""

    matched_count: int
    modified_count: int


@dataclass(frozen=True)
class DeleteResult:
    """Counts reported by a delete."""

    deleted_count: int


class EmployeeRepository(ABC):
    """Storage adapter for employees."""

    backend_name = "abstract"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize repository.

        Args:
            timeout: Budget in seconds for each backend call
        """
        self.timeout = timeout

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        """
        Await a backend call under the repository timeout.

        Args:
            operation: Operation name used in logs
            awaitable: Backend call to await

        Returns:
            Result of the backend call

        Raises:
            BackendUnavailable: If the call does not finish in time
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                "storage_operation_timeout",
                backend=self.backend_name,
                operation=operation,
                timeout=self.timeout
            )
            raise BackendUnavailable(
                f"{self.backend_name} did not answer {operation} within {self.timeout}s"
            ) from e

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open and verify the backend connection."""

    async def close(self) -> None:
        """Release the backend connection."""

    async def ping(self) -> bool:
        """Return True when the backend answers."""
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @abstractmethod
    def parse_identifier(self, raw: str) -> Any:
        """
        Convert a path parameter into the backend's native identifier.

        Never touches the backend.

        Raises:
            InvalidIdentifier: If raw is not a valid identifier for this backend
        """

    def format_identifier(self, employee_id: Any) -> EmployeeId:
        """Convert a native identifier into its wire form."""
        return employee_id

    @abstractmethod
    async def create(self, fields: Dict[str, Any]) -> EmployeeId:
        """Persist a new employee and return its freshly assigned identifier."""

    @abstractmethod
    async def find_by_id(self, employee_id: Any) -> Employee:
        """
        Fetch one employee.

        Raises:
            NotFound: If no employee has this identifier
        """

    @abstractmethod
    async def find_all(self) -> List[Employee]:
        """Return every stored employee, or an empty list."""

    @abstractmethod
    async def update_by_id(self, employee_id: Any, fields: Dict[str, Any]) -> UpdateResult:
        """Apply the supplied fields to the matching employee."""

    @abstractmethod
    async def delete_by_id(self, employee_id: Any) -> DeleteResult:
        """Remove the matching employee."""
