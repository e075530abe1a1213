# standup_sync/services/attendance_streak.py
from __future__ import annotations

from datetime import date as date_type, tzinfo
from typing import List, Sequence

from standup_sync.schemas.session import AttendanceRecordRead, AttendanceStatus

_COUNTED = {AttendanceStatus.PRESENT, AttendanceStatus.NOT_AVAILABLE}
_SUNDAY = 6
_MONDAY = 0


def calculate_streak(
    records: Sequence[AttendanceRecordRead],
    today: date_type,
    tz: tzinfo,
) -> int:
    """
    Length of the current attendance streak over a Monday-Saturday week.

    Rules
    -----
    - Only this month's Present / Not Available records on workdays count.
    - The latest counted day must be today or yesterday (up to two days back
      on a Monday, skipping Sunday), otherwise the streak is 0.
    - Walking backwards, a gap of one day continues the streak, and so does a
      two-day gap landing on Saturday from a Monday.
    """
    month_start = today.replace(day=1)

    days: List[date_type] = sorted(
        {
            r.scheduled_at.astimezone(tz).date()
            for r in records
            if r.status in _COUNTED
        },
        reverse=True,
    )
    days = [d for d in days if d.weekday() != _SUNDAY and month_start <= d <= today]
    if not days:
        return 0

    gap_from_today = (today - days[0]).days
    allowed_gap = 2 if today.weekday() == _MONDAY else 1
    if gap_from_today > allowed_gap:
        return 0

    streak = 1
    previous = days[0]
    for current in days[1:]:
        diff = (previous - current).days
        if diff == 1 or (diff == 2 and previous.weekday() == _MONDAY):
            streak += 1
            previous = current
        else:
            break
    return streak
