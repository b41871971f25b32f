import logging
from typing import Optional, Literal

from fastapi import APIRouter, HTTPException, Depends, Query, status

from hrportal.db import leaves_collection, employees_collection
from hrportal.models.employees import LEAVE_TYPES
from hrportal.models.leaves import Leave, LeaveStatus
from hrportal.schemas.leave import ApplyLeave
from hrportal.utils.app_utils import get_current_employee, serialize_objectid, get_page_bounds, total_pages
from hrportal.utils.leave_utils import calculate_leave_days, to_storage_datetime

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/apply", status_code=status.HTTP_201_CREATED)
async def apply_for_leave(leave_data: ApplyLeave, employee: dict = Depends(get_current_employee)):
    """
    Submit a leave request for the logged-in employee.

    The number of days is worked out from the dates and sessions once, here,
    and stored with the request. Nothing is deducted until an admin approves.

    Args:
        leave_data (ApplyLeave): leave type, date range, sessions and reason.
        employee (dict): The authenticated employee.
    Returns:
        dict: A success message and the stored request.
    Raises:
        HTTPException: 400 if the dates are invalid or the current balance cannot cover the request.
    """
    requested_days = calculate_leave_days(
        leave_data.from_date, leave_data.to_date, leave_data.from_session, leave_data.to_session
    )

    balances = employee.get("leave_balances") or {}
    available = balances.get(leave_data.leave_type, 0)
    if available < requested_days:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient {leave_data.leave_type} leave balance ({available} available).",
        )

    leave = Leave(
        employee=employee["_id"],
        leave_type=leave_data.leave_type,
        from_date=to_storage_datetime(leave_data.from_date),
        to_date=to_storage_datetime(leave_data.to_date),
        from_session=leave_data.from_session,
        to_session=leave_data.to_session,
        reason=leave_data.reason,
        applying_to=leave_data.applying_to,
        number_of_days=requested_days,
    )
    leave_dict = leave.model_dump()
    result = await leaves_collection.insert_one(leave_dict)
    leave_dict["_id"] = result.inserted_id

    logger.info("Leave request %s submitted for %s days", result.inserted_id, requested_days)
    return {"message": "Leave request submitted successfully.", "request": serialize_objectid(leave_dict)}


@router.get("/requests")
async def get_my_leave_requests(
    status: Optional[Literal["Pending", "History"]] = Query(
        None, description="Pending, or History for approved and rejected requests"
    ),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    employee: dict = Depends(get_current_employee),
):
    page, limit, skip = get_page_bounds(page, limit)

    query = {"employee": employee["_id"]}
    if status == "Pending":
        query["status"] = LeaveStatus.PENDING.value
    elif status == "History":
        query["status"] = {"$in": [LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value]}

    total = await leaves_collection.count_documents(query)
    requests = await leaves_collection.find(query).sort("created_at", -1).skip(skip).limit(limit) \
        .to_list(length=limit)

    return {
        "requests": serialize_objectid(requests),
        "current_page": page,
        "total_pages": total_pages(total, limit),
        "total_requests": total,
    }


@router.get("/balance")
async def get_my_leave_balance(employee: dict = Depends(get_current_employee)):
    current = await employees_collection.find_one({"_id": employee["_id"]}, projection={"leave_balances": 1})
    balances = (current or {}).get("leave_balances") or {}
    return {leave_type: balances.get(leave_type, 0) for leave_type in LEAVE_TYPES}
