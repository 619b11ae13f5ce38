"""Reusable Testcontainers configurations for integration tests.

Provides pre-configured containers for the MongoDB and PostgreSQL
storage backends.
"""

from typing import Optional

from testcontainers.mongodb import MongoDbContainer as BaseMongoDbContainer
from testcontainers.postgres import PostgresContainer as BasePostgresContainer


class MongoDBContainer(BaseMongoDbContainer):
    """Standalone MongoDB container."""

    def __init__(self, image: str = "mongo:7.0", **kwargs: object) -> None:
        """Initialize MongoDB container.

        Args:
            image: MongoDB image tag
            **kwargs: Additional container arguments
        """
        super().__init__(image=image, **kwargs)


class PostgresDBContainer(BasePostgresContainer):
    """PostgreSQL container exposing a plain asyncpg DSN."""

    def __init__(self, image: str = "postgres:16-alpine", **kwargs: object) -> None:
        """Initialize PostgreSQL container.

        Args:
            image: PostgreSQL image tag
            **kwargs: Additional container arguments
        """
        # driver=None yields postgresql://... rather than postgresql+psycopg2://...
        super().__init__(image=image, driver=None, **kwargs)


# Singleton container instances for test session
_mongodb_container: Optional[MongoDBContainer] = None
_postgres_container: Optional[PostgresDBContainer] = None


def get_mongodb_container() -> MongoDBContainer:
    """Get or create MongoDB container instance.

    Returns:
        MongoDBContainer instance
    """
    global _mongodb_container
    if _mongodb_container is None:
        container = MongoDBContainer()
        container.start()
        _mongodb_container = container
    return _mongodb_container


def get_postgres_container() -> PostgresDBContainer:
    """Get or create PostgreSQL container instance.

    Returns:
        PostgresDBContainer instance
    """
    global _postgres_container
    if _postgres_container is None:
        container = PostgresDBContainer()
        container.start()
        _postgres_container = container
    return _postgres_container
