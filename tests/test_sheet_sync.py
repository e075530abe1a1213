# tests/test_sheet_sync.py
from datetime import datetime, timezone

import httpx
import pytest

from standup_sync.schemas.session import AttendanceRecordRead, AttendanceStatus, SessionKind
from standup_sync.services import sheet_sync as sheet_module


def _records():
    at = datetime(2024, 3, 1, 3, 30, tzinfo=timezone.utc)
    return [
        AttendanceRecordRead(
            id="2024-03-01_emp-1",
            session_id="2024-03-01",
            employee_uid="emp-1",
            employee_name="Asha Rao",
            employee_email="asha@example.com",
            employee_code="NW0001",
            status=AttendanceStatus.NOT_AVAILABLE,
            reason="On leave",
            scheduled_at=at,
            marked_at=at,
        )
    ]


class _RecordingClient:
    posted = []
    fail = False

    def __init__(self, timeout=None):
        self.timeout = timeout

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def post(self, url, json=None):
        if _RecordingClient.fail:
            raise httpx.ReadTimeout("timed out")
        _RecordingClient.posted.append((url, json))
        return httpx.Response(200)


@pytest.fixture(autouse=True)
def _fake_http(monkeypatch):
    _RecordingClient.posted = []
    _RecordingClient.fail = False
    monkeypatch.setattr(httpx, "AsyncClient", _RecordingClient)


def test_payload_shape():
    payload = sheet_module.build_sheet_payload(SessionKind.STANDUP, _records())
    row = payload["records"][0]

    assert row["session_type"] == "standup"
    assert row["standup_id"] == "2024-03-01"
    assert row["employee_code"] == "NW0001"
    assert row["status"] == "Not Available"
    assert row["reason"] == "On leave"


@pytest.mark.asyncio
async def test_sync_is_skipped_when_not_configured(monkeypatch):
    class DummySettings:
        SHEET_SYNC_URL = None

    monkeypatch.setattr(sheet_module, "get_settings", lambda: DummySettings())

    sent = await sheet_module.sync_attendance_to_sheet(SessionKind.STANDUP, _records())
    assert sent is False
    assert _RecordingClient.posted == []


@pytest.mark.asyncio
async def test_sync_posts_records():
    sent = await sheet_module.sync_attendance_to_sheet(
        SessionKind.LEARNING_HOUR, _records(), url="https://sheets.example.com/hook"
    )

    assert sent is True
    url, body = _RecordingClient.posted[0]
    assert url == "https://sheets.example.com/hook"
    assert body["records"][0]["session_type"] == "learning_hour"


@pytest.mark.asyncio
async def test_sync_failure_is_reported_not_raised():
    _RecordingClient.fail = True

    sent = await sheet_module.sync_attendance_to_sheet(
        SessionKind.STANDUP, _records(), url="https://sheets.example.com/hook"
    )
    assert sent is False
