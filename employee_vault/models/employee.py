"""Employee models for the Cosmos DB employee store."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class EmployeeBase(BaseModel):
    """Writable employee fields.

    Required fields are typed as optional so an incomplete employee can still be
    built and then checked with ``validate_employee``.
    """

    employee_code: str | None = None
    address: str | None = None
    designation: str | None = None


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(EmployeeBase):
    pass


class Employee(EmployeeBase):
    """A stored employee, identified by ``employee_id``."""

    employee_id: int


class ValidationFailure(str, Enum):
    EMPLOYEE_CODE_MISSING = "employee_code_missing"
    DESIGNATION_MISSING = "designation_missing"


class EmployeeValidationResult(BaseModel):
    valid: bool
    failures: list[ValidationFailure] = []
