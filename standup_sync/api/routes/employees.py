# standup_sync/api/routes/employees.py
from http import HTTPStatus
from typing import Any, List

from fastapi import APIRouter, Depends, Query, Response

from standup_sync.api.dependencies.identity import get_identity
from standup_sync.api.dependencies.services import get_clock, get_employee_service, get_gateway
from standup_sync.api.errors import to_http_exception
from standup_sync.core.clock import Clock
from standup_sync.core.config import get_settings
from standup_sync.core.exceptions import DomainError
from standup_sync.schemas.employee import (
    AdminRoleRequest,
    AttendanceStreakRead,
    EmployeeAdminUpdate,
    EmployeeRead,
    EmployeeSetup,
    EmployeeUpdate,
)
from standup_sync.schemas.identity import Identity
from standup_sync.services.attendance_streak import calculate_streak
from standup_sync.services.employees import EmployeeService
from standup_sync.services.gateway import RemoteDataGateway

router = APIRouter(
    prefix="/employees",
    tags=["Employees"],
)


@router.get(
    "/me",
    response_model=EmployeeRead,
    summary="Caller's employee profile",
    description="Created from the identity headers on first sign-in.",
)
async def get_me(
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeRead:
    return await service.get_or_create_profile(identity)


@router.post(
    "/me/setup",
    response_model=EmployeeRead,
    summary="Complete first-time setup",
    responses={422: {"description": "Blank name or employee id."}},
)
async def complete_setup(
    payload: EmployeeSetup,
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeRead:
    try:
        return await service.complete_setup(identity, payload)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.patch(
    "/me",
    response_model=EmployeeRead,
    summary="Edit the caller's profile",
    responses={422: {"description": "A blank value, or null for a required field."}},
)
async def update_me(
    payload: EmployeeUpdate,
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeRead:
    try:
        return await service.update_profile(identity, payload)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/me/streak",
    response_model=AttendanceStreakRead,
    summary="Current standup attendance streak",
    description=(
        "Consecutive workdays (Monday-Saturday) this month with a Present or "
        "Not Available standup record. Admins get `N/A`."
    ),
)
async def get_my_streak(
    identity: Identity = Depends(get_identity),
    gateway: RemoteDataGateway = Depends(get_gateway),
    clock: Clock = Depends(get_clock),
) -> AttendanceStreakRead:
    if identity.is_admin:
        return AttendanceStreakRead(streak="N/A")
    tz = get_settings().tz
    records = await gateway.list_employee_attendance(identity.uid)
    return AttendanceStreakRead(
        streak=calculate_streak(records, clock().astimezone(tz).date(), tz)
    )


@router.get(
    "",
    response_model=List[EmployeeRead],
    summary="List employees (admin)",
)
async def list_employees(
    include_archived: bool = Query(False, description="Include archived employees."),
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> List[EmployeeRead]:
    try:
        return await service.list_employees(identity, include_archived=include_archived)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/admins",
    status_code=HTTPStatus.OK,
    summary="Grant the admin role (admin)",
    description="Calls the `addAdminRole` function for the given email.",
    responses={
        403: {"description": "Caller is not an admin."},
        502: {"description": "The function call failed."},
    },
)
async def add_admin(
    payload: AdminRoleRequest,
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> Any:
    try:
        return await service.promote_to_admin(identity, payload)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/admins/revoke",
    status_code=HTTPStatus.OK,
    summary="Remove the admin role (admin)",
    description="Calls the `removeAdminRole` function for the given email.",
    responses={
        400: {"description": "Attempt to remove own admin role."},
        403: {"description": "Caller is not an admin."},
        502: {"description": "The function call failed."},
    },
)
async def revoke_admin(
    payload: AdminRoleRequest,
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> Any:
    try:
        return await service.revoke_admin(identity, payload)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/pending",
    response_model=List[EmployeeRead],
    summary="Accounts awaiting approval (admin)",
)
async def list_pending(
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> List[EmployeeRead]:
    try:
        return await service.list_pending(identity)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/{uid}/approve",
    response_model=EmployeeRead,
    summary="Approve a pending account (admin)",
    responses={404: {"description": "Employee not found."}},
)
async def approve_employee(
    uid: str,
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeRead:
    try:
        return await service.approve(identity, uid)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.patch(
    "/{uid}",
    response_model=EmployeeRead,
    summary="Edit or archive an employee (admin)",
    responses={404: {"description": "Employee not found."}},
)
async def admin_update_employee(
    uid: str,
    payload: EmployeeAdminUpdate,
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeRead:
    try:
        return await service.admin_update(identity, uid, payload)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.delete(
    "/{uid}",
    status_code=HTTPStatus.NO_CONTENT,
    summary="Delete an employee (admin)",
    description=(
        "Calls the `deleteEmployee` function to remove the auth account, then "
        "removes the profile. Admins cannot delete themselves."
    ),
    responses={
        400: {"description": "Attempt to delete own account."},
        404: {"description": "Employee not found."},
        502: {"description": "The function call failed."},
    },
)
async def delete_employee(
    uid: str,
    identity: Identity = Depends(get_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> Response:
    try:
        await service.delete(identity, uid)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=HTTPStatus.NO_CONTENT)
