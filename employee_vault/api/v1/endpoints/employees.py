from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from employee_vault.core.dependencies import get_current_user, require_role
from employee_vault.models.auth import UserInfo
from employee_vault.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeValidationResult,
)
from employee_vault.services.employee_service import EmployeeStoreUnavailableError, employee_service
from employee_vault.services.employee_validation import EmployeeValidationError, validate_employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


def _validation_failed(err: EmployeeValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "message": "Employee validation failed",
            "failures": [f.value for f in err.failures],
        },
    )


def _store_unavailable(err: EmployeeStoreUnavailableError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(err),
    )


def _not_found(employee_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Employee with id {employee_id} not found",
    )


@router.get("", response_model=list[Employee])
async def list_employees(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    try:
        return await employee_service.list_employees(skip=skip, limit=limit)
    except Exception as err:
        logger.exception("Failed to list employees")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employees",
        ) from err


@router.post("/validate", response_model=EmployeeValidationResult)
async def validate(
    request: EmployeeCreate,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    return validate_employee(request)


@router.get("/{employee_id}", response_model=Employee)
async def get_employee(
    employee_id: int,
    user: UserInfo = Depends(get_current_user),  # noqa: B008
):
    try:
        employee = await employee_service.get_employee(employee_id)
    except Exception as err:
        logger.exception("Failed to get employee %d", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employee",
        ) from err

    if not employee:
        raise _not_found(employee_id)

    return employee


@router.post("", response_model=Employee, status_code=status.HTTP_201_CREATED)
async def create_employee(
    request: EmployeeCreate,
    user: UserInfo = Depends(require_role("admin", "editor")),  # noqa: B008
):
    try:
        employee = await employee_service.create_employee(request)
    except EmployeeValidationError as err:
        raise _validation_failed(err) from err
    except EmployeeStoreUnavailableError as err:
        raise _store_unavailable(err) from err
    except Exception as err:
        logger.exception("Failed to create employee")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create employee",
        ) from err

    logger.info("Employee %d created by user=%s", employee.employee_id, user.name)
    return employee


@router.put("/{employee_id}", response_model=Employee)
async def update_employee(
    employee_id: int,
    request: EmployeeUpdate,
    user: UserInfo = Depends(require_role("admin", "editor")),  # noqa: B008
):
    try:
        employee = await employee_service.update_employee(employee_id, request)
    except EmployeeValidationError as err:
        raise _validation_failed(err) from err
    except EmployeeStoreUnavailableError as err:
        raise _store_unavailable(err) from err
    except Exception as err:
        logger.exception("Failed to update employee %d", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update employee",
        ) from err

    if not employee:
        raise _not_found(employee_id)

    logger.info("Employee %d updated by user=%s", employee_id, user.name)
    return employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: int,
    user: UserInfo = Depends(require_role("admin")),  # noqa: B008
):
    try:
        deleted = await employee_service.delete_employee(employee_id)
    except EmployeeStoreUnavailableError as err:
        raise _store_unavailable(err) from err
    except Exception as err:
        logger.exception("Failed to delete employee %d", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete employee",
        ) from err

    if not deleted:
        raise _not_found(employee_id)

    logger.info("Employee %d deleted by user=%s", employee_id, user.name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
