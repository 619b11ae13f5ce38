"""
Storage error taxonomy shared by every repository backend.

Each backend translates its driver's exceptions into one of these classes
so that the service and the HTTP layer handle failures the same way no
matter which backend is active. Driver errors that do not fit a known
category become UnknownStorageError with the original exception chained.
"""

from typing import Any, Optional


class StorageError(Exception):
    """Base class for errors surfaced by repositories and the service."""

    error_code = "STORAGE_ERROR"

    def __init__(self, message: str, identifier: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.identifier = identifier


class EmployeeValidationError(StorageError):
    """Inbound payload failed validation; never reaches the backend."""

    error_code = "VALIDATION_ERROR"


class InvalidIdentifier(StorageError):
    """Identifier is malformed for the active backend."""

    error_code = "INVALID_IDENTIFIER"


class NotFound(StorageError):
    """No employee is stored under the identifier."""

    error_code = "NOT_FOUND"


class ConstraintViolation(StorageError):
    """Backend rejected the write on an integrity constraint."""

    error_code = "CONSTRAINT_VIOLATION"


class BackendUnavailable(StorageError):
    """Backend could not be reached or did not answer within the timeout."""

    error_code = "BACKEND_UNAVAILABLE"


class UnknownStorageError(StorageError):
    """Any other backend failure. The driver exception is kept as __cause__."""

    error_code = "UNKNOWN"
