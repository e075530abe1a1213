# tests/test_sessions_api.py
from http import HTTPStatus

import pytest

from standup_sync.api.dependencies.services import get_clock


@pytest.fixture
def frozen_app(client, clock, reset_db):
    client.app.dependency_overrides[get_clock] = lambda: clock
    yield client
    client.app.dependency_overrides.pop(get_clock, None)


def _member(uid: str, name: str) -> dict:
    return {"X-User-Id": uid, "X-User-Email": f"{uid}@example.com", "X-User-Name": name}


def test_requests_without_identity_are_rejected(frozen_app):
    resp = frozen_app.get("/standups/today")
    assert resp.status_code == HTTPStatus.UNAUTHORIZED


def test_standup_day_end_to_end(frozen_app, clock, admin_headers, member_headers):
    # Profiles are created on first sign-in.
    for uid, name in (("emp-1", "Asha Rao"), ("emp-2", "Ravi Kumar"), ("emp-3", "Meera Iyer")):
        assert frozen_app.get("/employees/me", headers=_member(uid, name)).status_code == HTTPStatus.OK

    resp = frozen_app.get("/standups/today", headers=member_headers)
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["status"] is None

    resp = frozen_app.post(
        "/standups/schedule",
        json={"date": "2024-03-01", "time": "09:00"},
        headers=admin_headers,
    )
    assert resp.status_code == HTTPStatus.CREATED
    assert resp.json()["id"] == "2024-03-01"

    clock.set_local(2024, 3, 1, 9, 0)
    resp = frozen_app.post("/standups/today/start", headers=admin_headers)
    assert resp.status_code == HTTPStatus.OK
    assert set(resp.json()["temp_attendance"].values()) == {"Missed"}

    resp = frozen_app.put(
        "/standups/today/attendance/emp-1",
        json={"status": "Present"},
        headers=admin_headers,
    )
    assert resp.status_code == HTTPStatus.OK

    resp = frozen_app.put(
        "/standups/today/attendance/emp-2",
        json={"status": "Not Available"},
        headers=admin_headers,
    )
    assert resp.status_code == HTTPStatus.BAD_REQUEST

    member_view = frozen_app.get("/standups/today", headers=member_headers).json()
    assert member_view["status"] == "active"
    assert member_view["roster"] is None

    admin_view = frozen_app.get(
        "/standups/today", params={"status": "Present"}, headers=admin_headers
    ).json()
    assert [e["employee_uid"] for e in admin_view["roster"]] == ["emp-1"]

    clock.set_local(2024, 3, 1, 9, 20)
    resp = frozen_app.post("/standups/today/stop", headers=admin_headers)
    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["session"]["status"] == "ended"
    assert {r["employee_uid"]: r["status"] for r in body["records"]} == {
        "emp-1": "Present",
        "emp-2": "Missed",
        "emp-3": "Missed",
    }

    ended = frozen_app.get("/standups/2024-03-01", headers=member_headers).json()
    assert ended["status"] == "ended"
    assert len(ended["roster"]) == 3
    assert ended["read_only"] is True

    resp = frozen_app.put(
        "/standups/2024-03-01/attendance/emp-2",
        json={"status": "Not Available", "reason": "Doctor appointment"},
        headers=admin_headers,
    )
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["reason"] == "Doctor appointment"

    resp = frozen_app.post("/standups/today/stop", headers=admin_headers)
    assert resp.status_code == HTTPStatus.CONFLICT


def test_members_cannot_run_sessions(frozen_app, member_headers):
    resp = frozen_app.post(
        "/learning-hours/schedule",
        json={"date": "2024-03-01", "time": "17:00"},
        headers=member_headers,
    )
    assert resp.status_code == HTTPStatus.FORBIDDEN


def test_scheduling_in_the_past_returns_400(frozen_app, clock, admin_headers):
    clock.set_local(2024, 3, 1, 18, 0)
    resp = frozen_app.post(
        "/learning-hours/schedule",
        json={"date": "2024-03-01", "time": "17:00"},
        headers=admin_headers,
    )
    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert "past" in resp.json()["detail"]


def test_learning_hours_have_no_post_end_edit(frozen_app, admin_headers):
    resp = frozen_app.put(
        "/learning-hours/2024-03-01/attendance/emp-1",
        json={"status": "Present"},
        headers=admin_headers,
    )
    assert resp.status_code in (HTTPStatus.NOT_FOUND, HTTPStatus.METHOD_NOT_ALLOWED)
