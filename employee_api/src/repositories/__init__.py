"""Employee repositories.

One repository per storage backend, all implementing EmployeeRepository:

- **InMemoryEmployeeRepository**: lock-guarded map, integer ids
- **MongoEmployeeRepository**: MongoDB collection, ObjectId ids
- **PostgresEmployeeRepository**: PostgreSQL table, BIGSERIAL ids

The active backend is picked once at startup by create_repository().
"""

import structlog

from employee_api.src.config import Settings
from employee_api.src.repositories.base import (
    DeleteResult,
    EmployeeRepository,
    UpdateResult,
)
from employee_api.src.repositories.memory_repo import EmployeeStore, InMemoryEmployeeRepository
from employee_api.src.repositories.mongo_repo import MongoEmployeeRepository
from employee_api.src.repositories.postgres_repo import PostgresEmployeeRepository

logger = structlog.get_logger(__name__)


def create_repository(settings: Settings) -> EmployeeRepository:
    """
    Build the repository for the configured storage backend.

    Args:
        settings: Application settings

    Returns:
        Unconnected repository; call connect() before use
    """
    backend = settings.storage_backend
    logger.info("creating_repository", backend=backend, timeout=settings.storage_timeout)

    if backend == "memory":
        return InMemoryEmployeeRepository(EmployeeStore(), timeout=settings.storage_timeout)
    if backend == "mongodb":
        return MongoEmployeeRepository(
            settings.mongodb_url,
            database=settings.mongodb_database,
            collection=settings.mongodb_collection,
            timeout=settings.storage_timeout,
        )
    if backend == "postgres":
        return PostgresEmployeeRepository(
            settings.database_url,
            table=settings.database_table,
            min_size=settings.database_pool_min_size,
            max_size=settings.database_pool_max_size,
            timeout=settings.storage_timeout,
        )
    raise ValueError(f"Unsupported storage backend: {backend}")


__all__ = [
    "create_repository",
    "DeleteResult",
    "EmployeeRepository",
    "EmployeeStore",
    "InMemoryEmployeeRepository",
    "MongoEmployeeRepository",
    "PostgresEmployeeRepository",
    "UpdateResult",
]
