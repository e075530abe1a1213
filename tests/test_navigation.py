# tests/test_navigation.py
import asyncio

import pytest

from standup_sync.schemas.navigation import Route
from standup_sync.services.navigation import (
    AdminState,
    AuthState,
    NavigationShell,
    StateCell,
    resolve_route,
)


@pytest.mark.parametrize(
    "authenticated, admin, setup_done, expected",
    [
        (False, False, False, Route.LANDING),
        (False, True, True, Route.LANDING),
        (True, True, False, Route.ADMIN),
        (True, False, False, Route.SETUP),
        (True, False, True, Route.EMPLOYEE),
    ],
)
def test_resolve_route(authenticated, admin, setup_done, expected):
    assert resolve_route(authenticated, admin, setup_done) == expected


@pytest.mark.parametrize(
    "admin, setup_done, expected",
    [
        (False, False, Route.PENDING),
        (False, True, Route.PENDING),
        (True, False, Route.ADMIN),
    ],
)
def test_pending_approval_blocks_employee_views(admin, setup_done, expected):
    assert resolve_route(True, admin, setup_done, approval_pending=True) == expected
    assert resolve_route(False, admin, setup_done, approval_pending=True) == Route.LANDING


def test_shell_reports_pending_approval():
    auth: StateCell[AuthState] = StateCell("auth")
    admin: StateCell[AdminState] = StateCell("admin")
    shell = NavigationShell(auth, admin)

    auth.set(AuthState(uid="emp-1", has_completed_setup=True, approval_pending=True))
    admin.set(AdminState(is_admin=False))

    nav = shell.current()
    assert nav.route == Route.PENDING
    assert nav.approval_pending is True


def test_shell_stays_loading_until_both_cells_report():
    auth: StateCell[AuthState] = StateCell("auth")
    admin: StateCell[AdminState] = StateCell("admin")
    shell = NavigationShell(auth, admin)

    auth.set(AuthState(uid="emp-1", has_completed_setup=True))
    assert shell.current().route == Route.LOADING

    admin.set(AdminState(is_admin=True))
    nav = shell.current()
    assert nav.route == Route.ADMIN
    assert nav.has_completed_setup is True


def test_cell_notifies_subscribers_until_unsubscribed():
    cell: StateCell[AdminState] = StateCell("admin")
    seen = []
    unsubscribe = cell.subscribe(seen.append)

    cell.set(AdminState(is_admin=False))
    unsubscribe()
    cell.set(AdminState(is_admin=True))

    assert seen == [AdminState(is_admin=False)]
    assert cell.value == AdminState(is_admin=True)


@pytest.mark.asyncio
async def test_resolve_waits_for_a_slow_admin_claim():
    auth: StateCell[AuthState] = StateCell("auth")
    admin: StateCell[AdminState] = StateCell("admin")
    shell = NavigationShell(auth, admin)

    pending = asyncio.create_task(shell.resolve())
    auth.set(AuthState(uid="lead-1", has_completed_setup=False))
    await asyncio.sleep(0)
    assert not pending.done()

    admin.set(AdminState(is_admin=True))
    nav = await pending

    # Never routed to setup first, even though setup is incomplete.
    assert nav.route == Route.ADMIN


@pytest.mark.asyncio
async def test_signed_out_user_lands_on_landing():
    auth: StateCell[AuthState] = StateCell("auth")
    admin: StateCell[AdminState] = StateCell("admin")
    auth.set(None)
    admin.set(None)

    nav = await NavigationShell(auth, admin).resolve(timeout=1)
    assert nav.route == Route.LANDING
    assert nav.is_authenticated is False
