"""
Integration tests for the MongoDB and PostgreSQL repositories.

Every test runs against both backends in real containers and checks the
same observable behaviour the in-memory backend provides:
- Create-then-read and listing
- Partial update with matched vs modified counts
- Delete idempotence
- Distinct identifiers under concurrent creates
- Full HTTP round trip through the application
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from employee_api.src.config import Settings
from employee_api.src.main import create_app
from employee_api.src.repositories.errors import NotFound

pytestmark = pytest.mark.integration


class TestRepositoryContract:
    """Test repository operations against real backends."""

    @pytest.mark.asyncio
    async def test_create_then_find(self, repository):
        employee_id = await repository.create({"name": "Ann", "department": "R&D"})

        employee = await repository.find_by_id(repository.parse_identifier(str(employee_id)))

        assert employee.id == employee_id
        assert employee.name == "Ann"
        assert employee.department == "R&D"
        assert employee.level is None

    @pytest.mark.asyncio
    async def test_create_without_fields(self, repository):
        employee_id = await repository.create({})

        employee = await repository.find_by_id(repository.parse_identifier(str(employee_id)))

        assert employee.model_dump(exclude_none=True) == {"id": employee_id}

    @pytest.mark.asyncio
    async def test_identifier_shape(self, repository, backend):
        """Test ids are ObjectId hex strings on MongoDB and integers on PostgreSQL."""
        employee_id = await repository.create({"name": "Ann"})

        if backend == "mongodb":
            assert isinstance(employee_id, str) and len(employee_id) == 24
        else:
            assert isinstance(employee_id, int) and employee_id >= 1

    @pytest.mark.asyncio
    async def test_find_missing(self, repository, backend):
        raw = "507f1f77bcf86cd799439011" if backend == "mongodb" else "424242"

        with pytest.raises(NotFound):
            await repository.find_by_id(repository.parse_identifier(raw))

    @pytest.mark.asyncio
    async def test_find_all(self, repository):
        assert await repository.find_all() == []

        for name in ["Ann", "Bob", "Cid"]:
            await repository.create({"name": name})

        assert sorted(e.name for e in await repository.find_all()) == ["Ann", "Bob", "Cid"]

    @pytest.mark.asyncio
    async def test_update_counts(self, repository):
        """Test matched and modified counts are reported separately."""
        employee_id = await repository.create({"name": "Ann", "level": "junior"})
        native_id = repository.parse_identifier(str(employee_id))

        changed = await repository.update_by_id(native_id, {"level": "senior"})
        unchanged = await repository.update_by_id(native_id, {"level": "senior"})
        empty = await repository.update_by_id(native_id, {})

        assert (changed.matched_count, changed.modified_count) == (1, 1)
        assert (unchanged.matched_count, unchanged.modified_count) == (1, 0)
        assert (empty.matched_count, empty.modified_count) == (1, 0)

        employee = await repository.find_by_id(native_id)
        assert employee.name == "Ann"
        assert employee.level == "senior"

    @pytest.mark.asyncio
    async def test_update_missing(self, repository, backend):
        raw = "507f1f77bcf86cd799439011" if backend == "mongodb" else "424242"

        result = await repository.update_by_id(repository.parse_identifier(raw), {"name": "x"})

        assert (result.matched_count, result.modified_count) == (0, 0)

    @pytest.mark.asyncio
    async def test_delete_twice(self, repository):
        employee_id = await repository.create({"name": "Ann"})
        native_id = repository.parse_identifier(str(employee_id))

        assert (await repository.delete_by_id(native_id)).deleted_count == 1
        assert (await repository.delete_by_id(native_id)).deleted_count == 0
        with pytest.raises(NotFound):
            await repository.find_by_id(native_id)

    @pytest.mark.asyncio
    async def test_concurrent_creates(self, repository):
        """Test K concurrent creates yield K distinct identifiers."""
        k = 100

        ids = await asyncio.gather(*(repository.create({"name": f"emp-{i}"}) for i in range(k)))

        assert len(set(ids)) == k
        assert len(await repository.find_all()) == k

    @pytest.mark.asyncio
    async def test_ping(self, repository):
        assert await repository.ping() is True


class TestHttpRoundTrip:
    """Test the application end to end on each backend."""

    def _settings(self, request, backend, storage_name):
        if backend == "mongodb":
            return Settings(
                storage_backend="mongodb",
                mongodb_url=request.getfixturevalue("mongodb_url"),
                mongodb_database="employees_test",
                mongodb_collection=storage_name,
                log_format="text",
            )
        return Settings(
            storage_backend="postgres",
            database_url=request.getfixturevalue("postgres_dsn"),
            database_table=storage_name,
            log_format="text",
        )

    def test_crud_over_http(self, request, backend, storage_name):
        settings = self._settings(request, backend, storage_name)

        with TestClient(create_app(settings)) as client:
            created = client.post("/employee", json={"name": "Ann", "level": "junior"})
            assert created.status_code == 201
            employee_id = created.json()["id"]

            assert client.get(f"/employee/{employee_id}").json() == {
                "id": employee_id,
                "name": "Ann",
                "level": "junior",
            }

            updated = client.put(f"/employee/{employee_id}", json={"level": "senior"})
            assert updated.json()["message"] == (
                "Employee updated successfully. Records matched: 1, modified: 1"
            )

            assert client.delete(f"/employee/{employee_id}").json()["deleted_count"] == 1
            assert client.delete(f"/employee/{employee_id}").json()["deleted_count"] == 0
            assert client.get(f"/employee/{employee_id}").status_code == 404
            assert client.get("/ready").status_code == 200

    def test_wrong_identifier_format(self, request, backend, storage_name):
        """Test each backend rejects the other backend's identifier shape."""
        settings = self._settings(request, backend, storage_name)
        foreign_id = "1" if backend == "mongodb" else "507f1f77bcf86cd799439011"

        with TestClient(create_app(settings)) as client:
            response = client.get(f"/employee/{foreign_id}")

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_IDENTIFIER"
