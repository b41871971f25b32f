from datetime import datetime, timedelta, date
from typing import Dict, List, Optional

from pytz import UTC, timezone

from hrportal.config import settings
from hrportal.models.attendance import AttendanceStatus


def business_tz():
    return timezone(settings.BUSINESS_TIMEZONE)


def local_day(moment: Optional[datetime] = None) -> date:
    """Calendar day in the business timezone for the given instant (default now)."""
    moment = moment or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = UTC.localize(moment)
    return moment.astimezone(business_tz()).date()


def start_of_day(day: date) -> datetime:
    """Local midnight of day, expressed as naive UTC for storage and lookups."""
    local_midnight = business_tz().localize(datetime(day.year, day.month, day.day))
    return local_midnight.astimezone(UTC).replace(tzinfo=None)


def is_late_check_in(moment: datetime) -> bool:
    if moment.tzinfo is None:
        moment = UTC.localize(moment)
    local = moment.astimezone(business_tz())
    threshold = local.replace(hour=settings.LATE_CHECKIN_HOUR, minute=settings.LATE_CHECKIN_MINUTE,
                              second=0, microsecond=0)
    return local > threshold


def history_window(page: int, days: int, today: Optional[date] = None) -> List[date]:
    """The days shown on one page of attendance history, newest first."""
    today = today or local_day()
    end = today - timedelta(days=(page - 1) * days)
    return [end - timedelta(days=offset) for offset in range(days)]


def build_attendance_grid(employees: List[dict], records: List[dict], days: List[date]) -> List[Dict]:
    """
    Arrange attendance records as employee -> {YYYY-MM-DD: "P" | "A"}.

    Days without a record, and records not marked present, count as absent.
    """
    key_by_start = {start_of_day(day): day.isoformat() for day in days}
    present = {}
    for record in records:
        day_key = key_by_start.get(record["date"])
        if day_key is None:
            continue
        mark = "P" if record.get("status") == AttendanceStatus.PRESENT.value else "A"
        present.setdefault(str(record["employee"]), {})[day_key] = mark

    results = []
    for employee in employees:
        marks = present.get(str(employee["_id"]), {})
        info = employee.get("employee_info") or {}
        results.append({
            "_id": str(employee["_id"]),
            "name": info.get("name"),
            "employee_id": info.get("employee_id"),
            "attendance": {day.isoformat(): marks.get(day.isoformat(), "A") for day in days},
        })
    return results
