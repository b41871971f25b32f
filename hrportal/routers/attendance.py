import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Depends, status
from pymongo.errors import DuplicateKeyError

from hrportal.db import attendance_collection
from hrportal.models.attendance import Attendance, AttendanceStatus
from hrportal.utils.app_utils import get_current_employee
from hrportal.utils.attendance_utils import local_day, start_of_day, is_late_check_in

UTC = timezone.utc

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkin", status_code=status.HTTP_201_CREATED)
async def check_in(employee: dict = Depends(get_current_employee)):
    """
    Mark the logged-in employee as present for the current business day.

    A check-in after 10:30 local time is flagged as late. A record created
    earlier without a check-in (for example one marked absent) is filled in
    rather than duplicated.

    Returns:
        dict: A success message, the check-in time and the late flag.
    Raises:
        HTTPException: 400 if the employee has already checked in today.
    """
    now = datetime.now(UTC)
    today = start_of_day(local_day(now))
    is_late = is_late_check_in(now)

    record = await attendance_collection.find_one({"employee": employee["_id"], "date": today})
    if record and record.get("check_in_time"):
        raise HTTPException(status_code=400, detail="Already checked in today.")

    if record:
        result = await attendance_collection.update_one(
            {"_id": record["_id"], "check_in_time": None},
            {"$set": {
                "check_in_time": now,
                "status": AttendanceStatus.PRESENT.value,
                "is_late": is_late,
                "updated_at": now,
            }},
        )
        if result.modified_count == 0:
            raise HTTPException(status_code=400, detail="Already checked in today.")
    else:
        attendance = Attendance(
            employee=employee["_id"],
            employee_id=employee["employee_info"]["employee_id"],
            date=today,
            check_in_time=now,
            status=AttendanceStatus.PRESENT,
            is_late=is_late,
        )
        try:
            await attendance_collection.insert_one(attendance.model_dump())
        except DuplicateKeyError:
            raise HTTPException(status_code=400, detail="Already checked in today.")

    logger.info("Employee %s checked in (late=%s)", employee["employee_info"]["employee_id"], is_late)
    return {"message": "Checked in successfully.", "check_in_time": now, "is_late": is_late}


@router.post("/checkout")
async def check_out(employee: dict = Depends(get_current_employee)):
    """
    Record the check-out time for today's attendance.

    Raises:
        HTTPException: 400 if there is no check-in today or the employee already checked out.
    """
    now = datetime.now(UTC)
    today = start_of_day(local_day(now))

    record = await attendance_collection.find_one({"employee": employee["_id"], "date": today})
    if not record or not record.get("check_in_time"):
        raise HTTPException(status_code=400, detail="You have not checked in today.")
    if record.get("check_out_time"):
        raise HTTPException(status_code=400, detail="Already checked out today.")

    result = await attendance_collection.update_one(
        {"_id": record["_id"], "check_out_time": None},
        {"$set": {"check_out_time": now, "updated_at": now}},
    )
    if result.modified_count == 0:
        raise HTTPException(status_code=400, detail="Already checked out today.")

    return {"message": "Checked out successfully.", "check_out_time": now}
