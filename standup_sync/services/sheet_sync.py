# standup_sync/services/sheet_sync.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from standup_sync.core.config import get_settings
from standup_sync.schemas.session import AttendanceRecordRead, SessionKind

logger = logging.getLogger(__name__)


def build_sheet_payload(
    kind: SessionKind,
    records: List[AttendanceRecordRead],
) -> Dict[str, Any]:
    """
    Shape attendance records the way the spreadsheet script expects them.
    """
    rows = [
        {
            "session_type": kind.value,
            "standup_id": r.session_id,
            "standup_time": r.scheduled_at.isoformat(),
            "employee_id": r.employee_uid,
            "employee_code": r.employee_code,
            "employee_name": r.employee_name,
            "employee_email": r.employee_email,
            "status": r.status.value,
            "reason": r.reason,
        }
        for r in records
    ]
    return {"records": rows}


async def sync_attendance_to_sheet(
    kind: SessionKind,
    records: List[AttendanceRecordRead],
    url: Optional[str] = None,
    timeout_seconds: float = 10.0,
) -> bool:
    """
    Best-effort POST of the final attendance to the spreadsheet webhook.

    Returns
    -------
    bool
        True if the request was sent, False if sync is not configured, there
        was nothing to send, or the transport failed. The response body and
        status are not inspected.
    """
    if url is None:
        configured = get_settings().SHEET_SYNC_URL
        url = str(configured) if configured else None
    if not url or not records:
        return False

    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            await client.post(url, json=build_sheet_payload(kind, records))
    except httpx.HTTPError as exc:
        logger.warning(
            "Sheet sync for %s %s failed: %s",
            kind.value,
            records[0].session_id,
            exc,
        )
        return False

    logger.info("Synced %d %s records to sheet", len(records), kind.value)
    return True
