from __future__ import annotations

from employee_vault.models.employee import (
    EmployeeBase,
    EmployeeValidationResult,
    ValidationFailure,
)

# Address carries no constraint.
_REQUIRED_FIELDS: list[tuple[str, ValidationFailure]] = [
    ("employee_code", ValidationFailure.EMPLOYEE_CODE_MISSING),
    ("designation", ValidationFailure.DESIGNATION_MISSING),
]


class EmployeeValidationError(Exception):
    def __init__(self, failures: list[ValidationFailure]) -> None:
        self.failures = failures
        super().__init__("Employee validation failed: " + ", ".join(f.value for f in failures))


def _is_missing(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_employee(employee: EmployeeBase) -> EmployeeValidationResult:
    failures = [
        failure
        for field_name, failure in _REQUIRED_FIELDS
        if _is_missing(getattr(employee, field_name))
    ]
    return EmployeeValidationResult(valid=not failures, failures=failures)


def ensure_valid(employee: EmployeeBase) -> None:
    result = validate_employee(employee)
    if not result.valid:
        raise EmployeeValidationError(result.failures)
