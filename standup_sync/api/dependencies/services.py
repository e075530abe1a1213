# standup_sync/api/dependencies/services.py
import logging
from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from standup_sync.core.clock import Clock, utc_now
from standup_sync.core.config import get_settings
from standup_sync.core.exceptions import RemoteCallError
from standup_sync.db.session import get_db
from standup_sync.schemas.session import SessionKind
from standup_sync.services.employees import EmployeeService
from standup_sync.services.functions_client import FunctionsClient, get_functions_client
from standup_sync.services.gateway import RemoteDataGateway
from standup_sync.services.onboarding import OnboardingService
from standup_sync.services.session_events import get_broadcaster
from standup_sync.services.session_lifecycle import SessionLifecycleController
from standup_sync.services.standup_automation import StandupAutomation

logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    return utc_now


def get_functions() -> Optional[FunctionsClient]:
    """
    Shared functions client, or None when the endpoint is not configured.

    Gateway calls that need it then fail with a RemoteCallError.
    """
    try:
        return get_functions_client()
    except RemoteCallError as exc:
        logger.debug("Functions client unavailable: %s", exc)
        return None


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_gateway(
    db: AsyncSession = Depends(get_db),
    functions: Optional[FunctionsClient] = Depends(get_functions),
    authorization: Optional[str] = Header(default=None),
) -> RemoteDataGateway:
    return RemoteDataGateway(
        db=db,
        functions=functions,
        id_token=_bearer_token(authorization),
    )


def session_controller(kind: SessionKind) -> Callable[..., SessionLifecycleController]:
    """
    Build a dependency yielding the lifecycle controller for ``kind``.
    """

    async def _dependency(
        gateway: RemoteDataGateway = Depends(get_gateway),
        clock: Clock = Depends(get_clock),
    ) -> SessionLifecycleController:
        return SessionLifecycleController(
            gateway=gateway,
            kind=kind,
            tz=get_settings().tz,
            clock=clock,
            broadcaster=get_broadcaster(),
        )

    return _dependency


async def get_employee_service(
    gateway: RemoteDataGateway = Depends(get_gateway),
) -> EmployeeService:
    return EmployeeService(gateway, require_approval=get_settings().REQUIRE_ADMIN_APPROVAL)


async def get_onboarding_service(
    gateway: RemoteDataGateway = Depends(get_gateway),
    clock: Clock = Depends(get_clock),
) -> OnboardingService:
    return OnboardingService(gateway, clock=clock)


async def get_standup_automation(
    controller: SessionLifecycleController = Depends(session_controller(SessionKind.STANDUP)),
) -> StandupAutomation:
    settings = get_settings()
    return StandupAutomation(
        controller,
        start_time=settings.STANDUP_AUTO_START_TIME,
        duration_minutes=settings.STANDUP_AUTO_DURATION_MINUTES,
    )
