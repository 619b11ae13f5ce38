"""
Employee entity and API schemas.

Provides Pydantic schemas for:
- Inbound employee payloads (create and update share one shape)
- The stored employee entity returned to clients
- Update/delete confirmations
- Error responses

Every employee field is optional. A field that is absent from a payload, or
sent as null, counts as "not supplied": it is never written on create and
never overwrites stored data on update. A field sent as any string,
including the empty string, is written.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# Backend-native identifiers: an integer sequence (memory, postgres) or a
# 24-character ObjectId hex string (mongodb).
EmployeeId = Union[int, str]


class EmployeeIn(BaseModel):
    """Inbound employee payload for create and update requests."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, description="Full name")
    department: Optional[str] = Field(None, description="Department the employee belongs to")
    level: Optional[str] = Field(None, description="Seniority level")
    description: Optional[str] = Field(None, description="Free-text description")

    def to_fields(self) -> Dict[str, str]:
        """Return only the fields the client actually supplied."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Employee(EmployeeIn):
    """Stored employee with its backend-assigned identifier."""

    id: EmployeeId = Field(..., description="Backend-assigned identifier")

    @classmethod
    def from_fields(cls, employee_id: EmployeeId, fields: Dict[str, Any]) -> "Employee":
        """Build an employee from stored fields, ignoring backend bookkeeping keys."""
        known = {key: value for key, value in fields.items() if key in EmployeeIn.model_fields}
        return cls(id=employee_id, **known)


class OperationResponse(BaseModel):
    """Confirmation returned by update and delete."""

    id: EmployeeId
    message: str
    matched_count: Optional[int] = None
    modified_count: Optional[int] = None
    deleted_count: Optional[int] = None


class ErrorResponse(BaseModel):
    """Error response schema."""

    id: Optional[EmployeeId] = None
    message: str
    error_code: Optional[str] = None
    details: Optional[Any] = None
