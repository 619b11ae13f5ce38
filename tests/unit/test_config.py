"""
Unit tests for application settings.
"""

import pytest
from pydantic import ValidationError

from employee_api.src.config import Settings, get_settings
from employee_api.src.repositories import (
    InMemoryEmployeeRepository,
    MongoEmployeeRepository,
    PostgresEmployeeRepository,
    create_repository,
)


class TestSettingsDefaults:
    """Test default configuration."""

    def test_defaults(self, monkeypatch):
        """Test the service starts on the memory backend at port 1325."""
        monkeypatch.delenv("EMPLOYEE_API_STORAGE_BACKEND", raising=False)
        settings = Settings()

        assert settings.storage_backend == "memory"
        assert settings.port == 1325
        assert settings.storage_timeout == 10.0
        assert settings.mongodb_database == "gotraining"
        assert settings.mongodb_collection == "employees"
        assert settings.required_fields == []
        assert settings.is_development


class TestSettingsValidation:
    """Test field validators."""

    def test_backend_is_normalised(self):
        assert Settings(storage_backend="MongoDB").storage_backend == "mongodb"

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(storage_backend="redis")

    def test_log_level_uppercased(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_required_fields_must_be_employee_fields(self):
        """Test required_fields only accepts known employee fields."""
        assert Settings(required_fields=["name"]).required_fields == ["name"]
        with pytest.raises(ValidationError):
            Settings(required_fields=["salary"])

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(storage_timeout=0)

    def test_table_name_pattern(self):
        with pytest.raises(ValidationError):
            Settings(database_table="employees; DROP TABLE x")


class TestEnvironmentOverrides:
    """Test EMPLOYEE_API_ environment variables."""

    def test_env_prefix(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("EMPLOYEE_API_STORAGE_BACKEND", "postgres")
        monkeypatch.setenv("EMPLOYEE_API_PORT", "8080")
        monkeypatch.setenv("EMPLOYEE_API_REQUIRED_FIELDS", '["name", "level"]')

        settings = get_settings()

        assert settings.storage_backend == "postgres"
        assert settings.port == 8080
        assert settings.required_fields == ["name", "level"]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestCreateRepository:
    """Test backend selection."""

    @pytest.mark.parametrize(
        "backend,expected",
        [
            ("memory", InMemoryEmployeeRepository),
            ("mongodb", MongoEmployeeRepository),
            ("postgres", PostgresEmployeeRepository),
        ],
    )
    def test_backend_selection(self, backend, expected):
        """Test each backend name builds its repository without connecting."""
        repository = create_repository(Settings(storage_backend=backend, storage_timeout=3))

        assert isinstance(repository, expected)
        assert repository.backend_name == backend
        assert repository.timeout == 3
