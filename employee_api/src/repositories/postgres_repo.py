"""
PostgreSQL employee repository.

Provides async CRUD operations for employees using asyncpg with a
connection pool. Every operation acquires its own pooled connection and
returns it on every exit path. Updates run in a transaction so that the
matched count (row locked by SELECT ... FOR UPDATE) and the modified count
(rows whose values actually changed) are reported separately.
"""

import re
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

import asyncpg
import structlog

from employee_api.src.config import EMPLOYEE_FIELDS
from employee_api.src.models.employee import Employee
from employee_api.src.repositories.base import (
    DEFAULT_TIMEOUT,
    DeleteResult,
    EmployeeRepository,
    UpdateResult,
)
from employee_api.src.repositories.errors import (
    BackendUnavailable,
    ConstraintViolation,
    EmployeeValidationError,
    InvalidIdentifier,
    NotFound,
    UnknownStorageError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

MAX_BIGINT = 2 ** 63 - 1
MAX_BIGINT_DIGITS = len(str(MAX_BIGINT))

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Connection-level failures; everything else from the server is a query error.
_UNAVAILABLE_ERRORS = (
    OSError,
    asyncpg.InterfaceError,
    asyncpg.PostgresConnectionError,
    asyncpg.CannotConnectNowError,
    asyncpg.TooManyConnectionsError,
)


def _rows_affected(status: str) -> int:
    """Extract the row count from a command tag such as 'DELETE 1'."""
    return int(status.split()[-1])


class PostgresEmployeeRepository(EmployeeRepository):
    """Repository for employee rows in a PostgreSQL table."""

    backend_name = "postgres"

    def __init__(
        self,
        dsn: str,
        table: str = "employees",
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = DEFAULT_TIMEOUT,
        pool: Optional[asyncpg.Pool] = None,
    ):
        """
        Initialize PostgreSQL repository.

        Args:
            dsn: PostgreSQL connection URL
            table: Table holding employees
            min_size: Minimum pool size
            max_size: Maximum pool size
            timeout: Budget in seconds for each backend call
            pool: Pre-built asyncpg pool (tests); created in connect() otherwise
        """
        super().__init__(timeout=timeout)
        if not _TABLE_NAME.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        self.dsn = dsn
        self.table = table
        self.min_size = min_size
        self.max_size = max_size
        self.pool = pool

    @asynccontextmanager
    async def connection(self):
        """
        Context manager lending a pooled connection.

        Yields:
            asyncpg.Connection: Database connection
        """
        if self.pool is None:
            raise BackendUnavailable("PostgreSQL pool is not initialized")
        async with self.pool.acquire() as conn:
            yield conn

    async def _execute(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Run a database call under the timeout and translate driver errors."""
        try:
            return await self._bounded(operation, awaitable)
        except asyncpg.IntegrityConstraintViolationError as e:
            logger.warning("postgres_constraint_violation", operation=operation, error=str(e))
            raise ConstraintViolation(f"Constraint violated during {operation}: {e}") from e
        except _UNAVAILABLE_ERRORS as e:
            logger.error("postgres_unavailable", operation=operation, error=str(e))
            raise BackendUnavailable(f"PostgreSQL unavailable during {operation}: {e}") from e
        except asyncpg.PostgresError as e:
            logger.error("postgres_operation_failed", operation=operation, error=str(e))
            raise UnknownStorageError(f"PostgreSQL {operation} failed: {e}") from e

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self.pool is None:
            try:
                self.pool = await self._bounded(
                    "connect",
                    asyncpg.create_pool(
                        self.dsn,
                        min_size=self.min_size,
                        max_size=self.max_size,
                        command_timeout=self.timeout
                    )
                )
            except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                logger.error("postgres_connect_failed", error=str(e))
                raise BackendUnavailable(f"Could not connect to PostgreSQL: {e}") from e

        await self.ensure_table()
        logger.info(
            "postgres_connected",
            table=self.table,
            min_size=self.min_size,
            max_size=self.max_size
        )

    async def ensure_table(self) -> None:
        """Create the employees table when it does not exist yet."""
        async def _create():
            async with self.connection() as conn:
                await conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self.table} (
                        id BIGSERIAL PRIMARY KEY,
                        name TEXT,
                        department TEXT,
                        level TEXT,
                        description TEXT
                    )
                    """
                )

        await self._execute("ensure_table", _create())

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
            logger.info("postgres_pool_closed")

    async def ping(self) -> bool:
        async def _ping():
            async with self.connection() as conn:
                return await conn.fetchval("SELECT 1")

        try:
            return await self._execute("ping", _ping()) == 1
        except (BackendUnavailable, UnknownStorageError):
            return False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def parse_identifier(self, raw: str) -> int:
        raw = str(raw).strip()
        if not (raw.isascii() and raw.isdigit()):
            raise InvalidIdentifier(f"Employee id must be a positive integer, got '{raw}'", identifier=raw)
        digits = raw.lstrip("0") or "0"
        if len(digits) > MAX_BIGINT_DIGITS:
            raise InvalidIdentifier(f"Employee id out of range: {len(digits)} digits", identifier=raw[:MAX_BIGINT_DIGITS])
        employee_id = int(digits)
        if not 1 <= employee_id <= MAX_BIGINT:
            raise InvalidIdentifier(f"Employee id out of range: {raw}", identifier=raw)
        return employee_id

    def _columns(self, fields: Dict[str, Any]) -> List[str]:
        unknown = [name for name in fields if name not in EMPLOYEE_FIELDS]
        if unknown:
            raise EmployeeValidationError(f"Unknown employee fields: {unknown}")
        return list(fields)

    async def create(self, fields: Dict[str, Any]) -> int:
        columns = self._columns(fields)

        async def _insert():
            async with self.connection() as conn:
                if not columns:
                    return await conn.fetchval(
                        f"INSERT INTO {self.table} DEFAULT VALUES RETURNING id"
                    )
                placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
                return await conn.fetchval(
                    f"""
                    INSERT INTO {self.table} ({', '.join(columns)})
                    VALUES ({placeholders})
                    RETURNING id
                    """,
                    *(fields[column] for column in columns)
                )

        employee_id = await self._execute("create", _insert())
        logger.debug("postgres_employee_inserted", employee_id=employee_id)
        return employee_id

    async def find_by_id(self, employee_id: int) -> Employee:
        async def _select():
            async with self.connection() as conn:
                return await conn.fetchrow(
                    f"""
                    SELECT id, name, department, level, description
                    FROM {self.table}
                    WHERE id = $1
                    """,
                    employee_id
                )

        row = await self._execute("find_by_id", _select())
        if not row:
            raise NotFound(f"Employee {employee_id} not found", identifier=employee_id)
        return Employee.from_fields(row["id"], dict(row))

    async def find_all(self) -> List[Employee]:
        async def _select():
            async with self.connection() as conn:
                return await conn.fetch(
                    f"""
                    SELECT id, name, department, level, description
                    FROM {self.table}
                    ORDER BY id
                    """
                )

        rows = await self._execute("find_all", _select())
        return [Employee.from_fields(row["id"], dict(row)) for row in rows]

    async def update_by_id(self, employee_id: int, fields: Dict[str, Any]) -> UpdateResult:
        columns = self._columns(fields)

        async def _update():
            async with self.connection() as conn:
                async with conn.transaction():
                    matched = await conn.fetchval(
                        f"SELECT id FROM {self.table} WHERE id = $1 FOR UPDATE",
                        employee_id
                    )
                    if matched is None:
                        return UpdateResult(matched_count=0, modified_count=0)
                    if not columns:
                        return UpdateResult(matched_count=1, modified_count=0)

                    assignments = ", ".join(
                        f"{column} = ${i}" for i, column in enumerate(columns, start=2)
                    )
                    changes = " OR ".join(
                        f"{column} IS DISTINCT FROM ${i}" for i, column in enumerate(columns, start=2)
                    )
                    status = await conn.execute(
                        f"""
                        UPDATE {self.table}
                        SET {assignments}
                        WHERE id = $1 AND ({changes})
                        """,
                        employee_id,
                        *(fields[column] for column in columns)
                    )
                    return UpdateResult(matched_count=1, modified_count=_rows_affected(status))

        return await self._execute("update_by_id", _update())

    async def delete_by_id(self, employee_id: int) -> DeleteResult:
        async def _delete():
            async with self.connection() as conn:
                return await conn.execute(
                    f"DELETE FROM {self.table} WHERE id = $1",
                    employee_id
                )

        status = await self._execute("delete_by_id", _delete())
        return DeleteResult(deleted_count=_rows_affected(status))
