"""Testcontainers for integration testing."""

from .containers import (
    MongoDBContainer,
    PostgresDBContainer,
    get_mongodb_container,
    get_postgres_container,
)

__all__ = [
    "MongoDBContainer",
    "PostgresDBContainer",
    "get_mongodb_container",
    "get_postgres_container",
]
