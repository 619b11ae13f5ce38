"""
Fixtures for storage backend integration tests.

Containers start once per session; each test gets a connected repository
on its own collection or table, dropped afterwards. Tests are skipped when
Docker is not available.
"""

import uuid

import pytest

from storage_containers import get_mongodb_container, get_postgres_container

from employee_api.src.repositories.mongo_repo import MongoEmployeeRepository
from employee_api.src.repositories.postgres_repo import PostgresEmployeeRepository

BACKENDS = ["mongodb", "postgres"]


@pytest.fixture(scope="session")
def mongodb_url():
    """Connection URL of the session MongoDB container."""
    try:
        container = get_mongodb_container()
    except Exception as e:
        pytest.skip(f"MongoDB container unavailable: {e}")
    yield container.get_connection_url()
    container.stop()


@pytest.fixture(scope="session")
def postgres_dsn():
    """DSN of the session PostgreSQL container."""
    try:
        container = get_postgres_container()
    except Exception as e:
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    yield container.get_connection_url()
    container.stop()


@pytest.fixture
def storage_name():
    """Unique collection/table name per test."""
    return f"employees_{uuid.uuid4().hex[:12]}"


@pytest.fixture(params=BACKENDS)
def backend(request):
    return request.param


@pytest.fixture
async def repository(request, backend, storage_name):
    """Connected repository for the parametrized backend."""
    if backend == "mongodb":
        repo = MongoEmployeeRepository(
            request.getfixturevalue("mongodb_url"),
            database="employees_test",
            collection=storage_name,
        )
        await repo.connect()
        yield repo
        await repo.collection.drop()
    else:
        repo = PostgresEmployeeRepository(request.getfixturevalue("postgres_dsn"), table=storage_name)
        await repo.connect()
        yield repo
        async with repo.connection() as conn:
            await conn.execute(f"DROP TABLE IF EXISTS {storage_name}")
    await repo.close()
