from fastapi import APIRouter, Depends, Query

from hrportal.config import settings
from hrportal.db import attendance_collection, employees_collection
from hrportal.models.attendance import AttendanceStatus
from hrportal.utils.app_utils import get_current_admin
from hrportal.utils.attendance_utils import local_day, start_of_day, history_window, build_attendance_grid
from hrportal.utils.export_utils import XLSX_MEDIA_TYPE, attachment, render_attendance_history_xlsx

router = APIRouter()


@router.get("/today-overview")
async def get_today_overview(admin: dict = Depends(get_current_admin)):
    """
    Summarise today's attendance across active employees.

    Returns:
        dict: A dictionary containing:
            - total_active_employees (int)
            - checked_in_count (int): Employees marked present today
            - not_checked_in_count (int)
            - late_check_in_count (int)
            - checked_in_list (list): name, employee ID, check-in time and late flag per employee
    """
    today = start_of_day(local_day())
    total_active = await employees_collection.count_documents({"is_active": True})

    records = await attendance_collection.find(
        {"date": today, "status": AttendanceStatus.PRESENT.value}
    ).sort("check_in_time", 1).to_list(length=None)

    employees = await employees_collection.find(
        {"_id": {"$in": [record["employee"] for record in records]}},
        projection={"employee_info.name": 1, "employee_info.employee_id": 1},
    ).to_list(length=None)
    names = {employee["_id"]: employee.get("employee_info", {}).get("name") for employee in employees}

    checked_in_list = [
        {
            "_id": str(record["employee"]),
            "name": names.get(record["employee"]),
            "employee_id": record.get("employee_id"),
            "check_in_time": record.get("check_in_time"),
            "is_late": record.get("is_late", False),
        }
        for record in records
    ]

    return {
        "total_active_employees": total_active,
        "checked_in_count": len(records),
        "not_checked_in_count": max(total_active - len(records), 0),
        "late_check_in_count": sum(1 for record in records if record.get("is_late")),
        "checked_in_list": checked_in_list,
    }


async def _attendance_history(page: int):
    days = history_window(page, settings.ATTENDANCE_HISTORY_DAYS)
    employees = await employees_collection.find(
        {"is_active": True},
        projection={"employee_info.name": 1, "employee_info.employee_id": 1},
    ).sort("employee_info.employee_id", 1).to_list(length=None)

    records = await attendance_collection.find(
        {
            "employee": {"$in": [employee["_id"] for employee in employees]},
            "date": {"$gte": start_of_day(days[-1]), "$lte": start_of_day(days[0])},
        },
        projection={"employee": 1, "date": 1, "status": 1},
    ).to_list(length=None)

    return build_attendance_grid(employees, records, days), [day.isoformat() for day in days]


@router.get("/history")
async def get_attendance_history(page: int = Query(1, ge=1), admin: dict = Depends(get_current_admin)):
    """
    Attendance of every active employee over a window of past days.

    Each page covers ATTENDANCE_HISTORY_DAYS days ending today (page 1) or
    further back, newest day first. Each day is "P" when the employee was
    marked present and "A" otherwise.
    """
    grid, dates = await _attendance_history(page)
    return {"employees_attendance": grid, "dates": dates, "current_page": page}


@router.get("/history/export")
async def export_attendance_history(page: int = Query(1, ge=1), admin: dict = Depends(get_current_admin)):
    grid, dates = await _attendance_history(page)
    content = render_attendance_history_xlsx(grid, dates)
    filename = f"Attendance_{dates[-1]}_to_{dates[0]}.xlsx"
    return attachment(content, XLSX_MEDIA_TYPE, filename)
