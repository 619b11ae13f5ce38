"""
In-memory employee repository.

Employees live in an EmployeeStore owned by whoever builds the repository.
The store keeps insertion order and hands out identifiers from a
monotonic counter; a single lock serialises every read and write so
concurrent requests (tasks or threads) never lose updates.
"""

import threading
from typing import Any, Dict, List, Tuple

import structlog

from employee_api.src.models.employee import Employee, EmployeeId
from employee_api.src.repositories.base import (
    DEFAULT_TIMEOUT,
    DeleteResult,
    EmployeeRepository,
    UpdateResult,
)
from employee_api.src.repositories.errors import InvalidIdentifier, NotFound

logger = structlog.get_logger(__name__)

# Ids past this many significant digits are refused before int() conversion
MAX_ID_DIGITS = 19


class EmployeeStore:
    """Lock-guarded map of employee id to stored fields."""

    def __init__(self, first_id: int = 1):
        self._lock = threading.Lock()
        self._records: Dict[int, Dict[str, Any]] = {}
        self._next_id = first_id

    def insert(self, fields: Dict[str, Any]) -> int:
        with self._lock:
            employee_id = self._next_id
            self._next_id += 1
            self._records[employee_id] = dict(fields)
            return employee_id

    def get(self, employee_id: int) -> Dict[str, Any]:
        """Return a copy of the stored fields, or raise KeyError."""
        with self._lock:
            return dict(self._records[employee_id])

    def items(self) -> List[Tuple[int, Dict[str, Any]]]:
        with self._lock:
            return [(employee_id, dict(fields)) for employee_id, fields in self._records.items()]

    def update(self, employee_id: int, fields: Dict[str, Any]) -> Tuple[int, int]:
        """Merge fields into a record and return (matched, modified)."""
        with self._lock:
            record = self._records.get(employee_id)
            if record is None:
                return 0, 0
            changed = any(record.get(key) != value for key, value in fields.items())
            record.update(fields)
            return 1, int(changed)

    def delete(self, employee_id: int) -> int:
        with self._lock:
            return 1 if self._records.pop(employee_id, None) is not None else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryEmployeeRepository(EmployeeRepository):
    """Repository backed by an injected EmployeeStore."""

    backend_name = "memory"

    def __init__(self, store: EmployeeStore = None, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(timeout=timeout)
        self.store = store if store is not None else EmployeeStore()

    def parse_identifier(self, raw: str) -> int:
        raw = str(raw).strip()
        if not (raw.isascii() and raw.isdigit()):
            raise InvalidIdentifier(f"Employee id must be a positive integer, got '{raw}'", identifier=raw)
        digits = raw.lstrip("0") or "0"
        if len(digits) > MAX_ID_DIGITS:
            raise InvalidIdentifier(f"Employee id is too long: {len(digits)} digits", identifier=raw[:MAX_ID_DIGITS])
        employee_id = int(digits)
        if employee_id < 1:
            raise InvalidIdentifier(f"Employee id must be a positive integer, got '{raw}'", identifier=raw)
        return employee_id

    async def create(self, fields: Dict[str, Any]) -> int:
        employee_id = self.store.insert(fields)
        logger.debug("memory_employee_inserted", employee_id=employee_id)
        return employee_id

    async def find_by_id(self, employee_id: EmployeeId) -> Employee:
        try:
            fields = self.store.get(employee_id)
        except KeyError:
            raise NotFound(f"Employee {employee_id} not found", identifier=employee_id)
        return Employee.from_fields(employee_id, fields)

    async def find_all(self) -> List[Employee]:
        return [Employee.from_fields(employee_id, fields) for employee_id, fields in self.store.items()]

    async def update_by_id(self, employee_id: EmployeeId, fields: Dict[str, Any]) -> UpdateResult:
        matched, modified = self.store.update(employee_id, fields)
        return UpdateResult(matched_count=matched, modified_count=modified)

    async def delete_by_id(self, employee_id: EmployeeId) -> DeleteResult:
        return DeleteResult(deleted_count=self.store.delete(employee_id))
