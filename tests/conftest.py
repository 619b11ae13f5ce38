"""
Shared pytest fixtures for the employee API test suite.
"""

import pytest
from fastapi.testclient import TestClient

from employee_api.src.config import Settings, clear_settings_cache
from employee_api.src.main import create_app
from employee_api.src.repositories.memory_repo import EmployeeStore, InMemoryEmployeeRepository


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Drop cached settings so environment changes in one test never leak."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings():
    """Settings for a memory-backed app with text logs and metrics on."""
    return Settings(
        storage_backend="memory",
        log_format="text",
        log_level="WARNING",
        metrics_enabled=True,
    )


@pytest.fixture
def memory_repository():
    """Fresh in-memory repository."""
    return InMemoryEmployeeRepository(EmployeeStore())


@pytest.fixture
def app(settings, memory_repository):
    """FastAPI app wired to the in-memory repository."""
    return create_app(settings, repository=memory_repository)


@pytest.fixture
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
