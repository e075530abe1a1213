# standup_sync/services/navigation.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

from standup_sync.schemas.navigation import NavigationRead, Route

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateCell(Generic[T]):
    """
    Observable value that reports when it has been initialized.

    The first ``set`` marks the cell initialized; every ``set`` notifies
    subscribers with the new value.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._value: Optional[T] = None
        self._initialized = asyncio.Event()
        self._subscribers: List[Callable[[Optional[T]], None]] = []

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def initialized(self) -> bool:
        return self._initialized.is_set()

    def set(self, value: Optional[T]) -> None:
        self._value = value
        self._initialized.set()
        for callback in list(self._subscribers):
            callback(value)

    def subscribe(self, callback: Callable[[Optional[T]], None]) -> Callable[[], None]:
        """
        Register ``callback``; returns an unsubscribe function.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    async def wait_initialized(self) -> None:
        await self._initialized.wait()


@dataclass(frozen=True)
class AuthState:
    uid: str
    email: str = ""
    display_name: str = ""
    has_completed_setup: bool = False
    approval_pending: bool = False


@dataclass(frozen=True)
class AdminState:
    is_admin: bool = False


def resolve_route(
    is_authenticated: bool,
    is_admin: bool,
    has_completed_setup: bool,
    approval_pending: bool = False,
) -> Route:
    """
    Pure routing decision.

    Rules
    -----
    1) Not authenticated       => landing
    2) Admin claim present     => admin views
    3) Awaiting admin approval => pending notice
    4) Setup not completed     => setup wizard
    5) Otherwise               => employee views
    """
    if not is_authenticated:
        return Route.LANDING
    if is_admin:
        return Route.ADMIN
    if approval_pending:
        return Route.PENDING
    if not has_completed_setup:
        return Route.SETUP
    return Route.EMPLOYEE


class NavigationShell:
    """
    Joins the auth/profile cell and the admin-claim cell.

    No routing decision is made until both cells have reported once, so a
    slow admin claim never flashes the employee views.
    """

    def __init__(
        self,
        auth: StateCell[AuthState],
        admin: StateCell[AdminState],
    ) -> None:
        self.auth = auth
        self.admin = admin

    @property
    def ready(self) -> bool:
        return self.auth.initialized and self.admin.initialized

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        await asyncio.wait_for(
            asyncio.gather(self.auth.wait_initialized(), self.admin.wait_initialized()),
            timeout=timeout,
        )

    def current(self) -> NavigationRead:
        if not self.ready:
            return NavigationRead(
                route=Route.LOADING,
                is_authenticated=False,
                is_admin=False,
                has_completed_setup=False,
            )

        auth = self.auth.value
        admin = self.admin.value
        is_authenticated = auth is not None
        is_admin = bool(admin and admin.is_admin)
        has_completed_setup = bool(auth and auth.has_completed_setup)
        approval_pending = bool(auth and auth.approval_pending)
        return NavigationRead(
            route=resolve_route(
                is_authenticated, is_admin, has_completed_setup, approval_pending
            ),
            is_authenticated=is_authenticated,
            is_admin=is_admin,
            has_completed_setup=has_completed_setup,
            approval_pending=approval_pending,
        )

    async def resolve(self, timeout: Optional[float] = None) -> NavigationRead:
        await self.wait_ready(timeout=timeout)
        return self.current()
