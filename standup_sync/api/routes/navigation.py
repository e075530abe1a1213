# standup_sync/api/routes/navigation.py
import asyncio
from typing import Optional

from fastapi import APIRouter, Depends

from standup_sync.api.dependencies.identity import get_optional_identity
from standup_sync.api.dependencies.services import get_employee_service
from standup_sync.schemas.identity import Identity
from standup_sync.schemas.navigation import NavigationRead
from standup_sync.services.employees import EmployeeService
from standup_sync.services.navigation import AdminState, AuthState, NavigationShell, StateCell

router = APIRouter(tags=["Navigation"])


@router.get(
    "/navigation",
    response_model=NavigationRead,
    summary="Which view the caller should land on",
    description=(
        "Resolves only after both the profile and the admin claim are known:\n\n"
        "1) anonymous -> `landing`\n"
        "2) admin -> `admin`\n"
        "3) awaiting admin approval -> `pending`\n"
        "4) setup incomplete -> `setup`\n"
        "5) otherwise -> `employee`"
    ),
)
async def get_navigation(
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: EmployeeService = Depends(get_employee_service),
) -> NavigationRead:
    auth: StateCell[AuthState] = StateCell("auth")
    admin: StateCell[AdminState] = StateCell("admin")
    shell = NavigationShell(auth, admin)

    async def load_profile() -> None:
        if identity is None:
            auth.set(None)
            return
        profile = await service.get_or_create_profile(identity)
        auth.set(
            AuthState(
                uid=identity.uid,
                email=identity.email,
                display_name=identity.display_name,
                has_completed_setup=profile.has_completed_setup,
                approval_pending=profile.admin_approval_required,
            )
        )

    async def load_admin_claim() -> None:
        admin.set(AdminState(is_admin=bool(identity and identity.is_admin)))

    await asyncio.gather(load_profile(), load_admin_claim())
    return await shell.resolve()
