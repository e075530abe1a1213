# standup_sync/services/employees.py
from __future__ import annotations

import logging
from typing import Any, List

from standup_sync.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from standup_sync.schemas.employee import (
    AdminRoleRequest,
    EmployeeAdminUpdate,
    EmployeeRead,
    EmployeeSetup,
    EmployeeUpdate,
)
from standup_sync.schemas.identity import Identity
from standup_sync.services.gateway import RemoteDataGateway

logger = logging.getLogger(__name__)


class EmployeeService:
    """
    Employee profile operations for self-service and the admin console.

    With ``require_approval`` set, profiles created on first sign-in by a
    non-admin wait in the approval queue until an admin approves them.
    """

    def __init__(self, gateway: RemoteDataGateway, require_approval: bool = False) -> None:
        self.gateway = gateway
        self.require_approval = require_approval

    # -- self -------------------------------------------------------------

    async def get_or_create_profile(self, actor: Identity) -> EmployeeRead:
        """
        Return the caller's profile, creating it on first sign-in.
        """
        employee = await self.gateway.get_employee(actor.uid)
        if employee is not None:
            return employee
        logger.info("Creating employee profile for %s", actor.uid)
        return await self.gateway.create_employee(
            uid=actor.uid,
            email=actor.email,
            name=actor.display_name,
            approval_required=self.require_approval and not actor.is_admin,
        )

    async def complete_setup(self, actor: Identity, payload: EmployeeSetup) -> EmployeeRead:
        await self.get_or_create_profile(actor)
        fields = payload.model_dump()
        fields["has_completed_setup"] = True
        return await self.gateway.update_employee(actor.uid, fields)

    async def update_profile(self, actor: Identity, payload: EmployeeUpdate) -> EmployeeRead:
        await self.get_or_create_profile(actor)
        return await self.gateway.update_employee(
            actor.uid, payload.model_dump(exclude_unset=True)
        )

    # -- admin ------------------------------------------------------------

    def _require_admin(self, actor: Identity) -> None:
        if not actor.is_admin:
            raise PermissionDeniedError("Admins only.")

    async def list_employees(self, actor: Identity, include_archived: bool = False) -> List[EmployeeRead]:
        self._require_admin(actor)
        return await self.gateway.list_employees(include_archived=include_archived)

    async def admin_update(
        self,
        actor: Identity,
        uid: str,
        payload: EmployeeAdminUpdate,
    ) -> EmployeeRead:
        self._require_admin(actor)
        return await self.gateway.update_employee(uid, payload.model_dump(exclude_unset=True))

    async def delete(self, actor: Identity, uid: str) -> None:
        """
        Delete the employee's auth account and profile.
        """
        self._require_admin(actor)
        if uid == actor.uid:
            raise ValidationError("Admins cannot delete their own account.")
        if await self.gateway.get_employee(uid) is None:
            raise NotFoundError(f"Employee with uid={uid} not found.")
        await self.gateway.delete_employee(uid)
        logger.info("Employee %s deleted by %s", uid, actor.uid)

    async def promote_to_admin(self, actor: Identity, payload: AdminRoleRequest) -> Any:
        self._require_admin(actor)
        result = await self.gateway.add_admin_role(payload.email)
        logger.info("Admin role requested for %s by %s", payload.email, actor.uid)
        return result

    async def revoke_admin(self, actor: Identity, payload: AdminRoleRequest) -> Any:
        self._require_admin(actor)
        if actor.email and payload.email == actor.email.strip().lower():
            raise ValidationError("Admins cannot remove their own admin role.")
        result = await self.gateway.remove_admin_role(payload.email)
        logger.info("Admin role removal requested for %s by %s", payload.email, actor.uid)
        return result

    # -- approval ---------------------------------------------------------

    async def list_pending(self, actor: Identity) -> List[EmployeeRead]:
        self._require_admin(actor)
        return await self.gateway.list_pending_employees()

    async def approve(self, actor: Identity, uid: str) -> EmployeeRead:
        self._require_admin(actor)
        approved = await self.gateway.update_employee(uid, {"admin_approval_required": False})
        logger.info("Employee %s approved by %s", uid, actor.uid)
        return approved
