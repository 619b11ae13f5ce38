"""
MongoDB employee repository.

Uses PyMongo's asyncio client. Employees are stored as documents keyed by
an ObjectId ``_id``; the hex form of that ObjectId is the public identifier.
Matched and modified counts from update_one are surfaced unchanged.
"""

from typing import Any, Awaitable, Dict, List, Optional, TypeVar

import structlog
from bson import ObjectId
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    PyMongoError,
    WTimeoutError,
)

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
    InvalidIdentifier,
    NotFound,
    UnknownStorageError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class MongoEmployeeRepository(EmployeeRepository):
    """Repository for employee documents in a MongoDB collection."""

    backend_name = "mongodb"

    def __init__(
        self,
        url: str,
        database: str = "gotraining",
        collection: str = "employees",
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[AsyncMongoClient] = None,
    ):
        """
        Initialize MongoDB repository.

        Args:
            url: MongoDB connection URL
            database: Database name
            collection: Collection name
            timeout: Budget in seconds for each backend call
            client: Pre-built client (tests); built lazily in connect() otherwise
        """
        super().__init__(timeout=timeout)
        self.url = url
        self.database_name = database
        self.collection_name = collection
        self.client = client

    @property
    def collection(self) -> AsyncCollection:
        if self.client is None:
            raise BackendUnavailable("MongoDB client is not connected")
        return self.client[self.database_name][self.collection_name]

    async def _execute(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Run a driver call under the timeout and translate driver errors."""
        try:
            return await self._bounded(operation, awaitable)
        except DuplicateKeyError as e:
            logger.warning("mongodb_duplicate_key", operation=operation, error=str(e))
            raise ConstraintViolation(f"Duplicate key on {operation}") from e
        except (ConnectionFailure, ExecutionTimeout, WTimeoutError) as e:
            logger.error("mongodb_unavailable", operation=operation, error=str(e))
            raise BackendUnavailable(f"MongoDB unavailable during {operation}: {e}") from e
        except PyMongoError as e:
            logger.error("mongodb_operation_failed", operation=operation, error=str(e))
            raise UnknownStorageError(f"MongoDB {operation} failed: {e}") from e

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self.client is None:
            self.client = AsyncMongoClient(
                self.url,
                serverSelectionTimeoutMS=int(self.timeout * 1000),
            )
        await self._execute("connect", self.client.admin.command("ping"))
        logger.info(
            "mongodb_connected",
            database=self.database_name,
            collection=self.collection_name
        )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None
            logger.info("mongodb_connection_closed")

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            await self._execute("ping", self.client.admin.command("ping"))
            return True
        except (BackendUnavailable, UnknownStorageError):
            return False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def parse_identifier(self, raw: str) -> ObjectId:
        if not ObjectId.is_valid(raw):
            raise InvalidIdentifier(
                f"Employee id must be a 24-character hex ObjectId, got '{raw}'",
                identifier=raw
            )
        return ObjectId(raw)

    def format_identifier(self, employee_id: ObjectId) -> str:
        return str(employee_id)

    async def create(self, fields: Dict[str, Any]) -> str:
        result = await self._execute("create", self.collection.insert_one(dict(fields)))
        employee_id = str(result.inserted_id)
        logger.debug("mongodb_employee_inserted", employee_id=employee_id)
        return employee_id

    async def find_by_id(self, employee_id: ObjectId) -> Employee:
        document = await self._execute("find_by_id", self.collection.find_one({"_id": employee_id}))
        if document is None:
            raise NotFound(f"Employee {employee_id} not found", identifier=str(employee_id))
        return Employee.from_fields(str(document["_id"]), document)

    async def find_all(self) -> List[Employee]:
        documents = await self._execute("find_all", self.collection.find({}).to_list(None))
        return [Employee.from_fields(str(document["_id"]), document) for document in documents]

    async def update_by_id(self, employee_id: ObjectId, fields: Dict[str, Any]) -> UpdateResult:
        if not fields:
            # $set rejects an empty document; report the match without writing
            matched = await self._execute(
                "update_by_id",
                self.collection.count_documents({"_id": employee_id}, limit=1)
            )
            return UpdateResult(matched_count=matched, modified_count=0)

        result = await self._execute(
            "update_by_id",
            self.collection.update_one({"_id": employee_id}, {"$set": fields})
        )
        return UpdateResult(matched_count=result.matched_count, modified_count=result.modified_count)

    async def delete_by_id(self, employee_id: ObjectId) -> DeleteResult:
        result = await self._execute("delete_by_id", self.collection.delete_one({"_id": employee_id}))
        return DeleteResult(deleted_count=result.deleted_count)
