import logging
from datetime import datetime, timezone

from bson import ObjectId
from fastapi import APIRouter, HTTPException, Depends

from hrportal.db import leaves_collection, employees_collection, leave_ledger_collection
from hrportal.exceptions import get_unknown_entity_exception
from hrportal.models.leaves import LeaveStatus
from hrportal.schemas.leave import LeaveAction, LeaveBalanceUpdate
from hrportal.utils.activity_utils import log_admin_activity
from hrportal.utils.app_utils import get_current_admin, to_object_id, serialize_objectid
from hrportal.utils.leave_utils import (debit_leave_balance, restore_leave_balance, record_ledger_entry,
                                        set_leave_balances, get_ledger_balances)

UTC = timezone.utc

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/pending")
async def get_pending_leave_requests(admin: dict = Depends(get_current_admin)):
    """
    List every pending leave request, oldest first, with the applicant's name and employee ID.
    """
    requests = await leaves_collection.find({"status": LeaveStatus.PENDING.value}) \
        .sort("created_at", 1).to_list(length=None)

    employee_ids = list({request["employee"] for request in requests})
    employees = await employees_collection.find(
        {"_id": {"$in": employee_ids}},
        projection={"employee_info.name": 1, "employee_info.employee_id": 1},
    ).to_list(length=None)
    by_id = {employee["_id"]: employee for employee in employees}

    for request in requests:
        employee = by_id.get(request["employee"])
        info = (employee or {}).get("employee_info") or {}
        request["employee"] = {
            "_id": request["employee"],
            "name": info.get("name"),
            "employee_id": info.get("employee_id"),
        }

    return serialize_objectid(requests)


async def _approve(leave: dict, admin_id: ObjectId, remarks: str) -> bool:
    """
    Debit the balance and claim the request for approval.

    The balance is debited first under a guard on the remaining days, then the
    request is moved out of Pending with a conditional update. If another admin
    got to the request in between, the debit is put back.
    """
    employee_id = leave["employee"]
    leave_type = leave["leave_type"]
    days = leave["number_of_days"]

    if not await debit_leave_balance(employee_id, leave_type, days):
        employee = await employees_collection.find_one({"_id": employee_id}, projection={"employee_info": 1})
        if not employee:
            raise HTTPException(status_code=404, detail="Employee for this leave request was not found.")
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient {leave_type} leave balance for employee "
                   f"{employee['employee_info'].get('employee_id')}. Cannot approve.",
        )

    now = datetime.now(UTC)
    result = await leaves_collection.update_one(
        {"_id": leave["_id"], "status": LeaveStatus.PENDING.value},
        {"$set": {
            "status": LeaveStatus.APPROVED.value,
            "action_taken_by": admin_id,
            "action_taken_at": now,
            "admin_remarks": remarks,
            "updated_at": now,
        }},
    )
    if result.modified_count == 0:
        await restore_leave_balance(employee_id, leave_type, days)
        return False

    await record_ledger_entry(
        employee_id, leave_type, -days, "leave_approval",
        source_key=f"leave:{leave['_id']}", leave_request=leave["_id"], created_by=admin_id,
    )
    return True


@router.put("/requests/{request_id}")
async def update_leave_request_status(request_id: str, action: LeaveAction,
                                      admin: dict = Depends(get_current_admin)):
    """
    Approve or reject a pending leave request.

    Approval deducts the request's stored number of days from the employee's
    balance and records the debit in the leave ledger. Rejection leaves the
    balance alone. Either way the decision is final.

    Args:
        request_id (str): The leave request's ID.
        action (LeaveAction): "Approved" or "Rejected", with optional admin remarks.
        admin (dict): The authenticated admin.
    Returns:
        dict: A success message and the updated request.
    Raises:
        HTTPException:
            - 400: If the ID is malformed, the request was already decided, or the balance is insufficient
            - 404: If the request or its employee does not exist
    """
    oid = to_object_id(request_id, "leave request ID")
    leave = await leaves_collection.find_one({"_id": oid})
    if not leave:
        raise get_unknown_entity_exception("Leave request")

    if leave["status"] != LeaveStatus.PENDING.value:
        raise HTTPException(status_code=400, detail=f"Request already {leave['status'].lower()}.")

    remarks = action.admin_remarks or ""
    if action.status == LeaveStatus.APPROVED.value:
        decided = await _approve(leave, admin["_id"], remarks)
    else:
        now = datetime.now(UTC)
        result = await leaves_collection.update_one(
            {"_id": oid, "status": LeaveStatus.PENDING.value},
            {"$set": {
                "status": LeaveStatus.REJECTED.value,
                "action_taken_by": admin["_id"],
                "action_taken_at": now,
                "admin_remarks": remarks,
                "updated_at": now,
            }},
        )
        decided = result.modified_count == 1

    if not decided:
        raise HTTPException(status_code=400, detail="Request has already been actioned.")

    await log_admin_activity(str(admin["_id"]), "leave", action.status.lower(), "success", request_id)

    updated = await leaves_collection.find_one({"_id": oid})
    return {
        "message": f"Leave request {action.status.lower()} successfully.",
        "request": serialize_objectid(updated),
    }


@router.get("/balances")
async def get_all_leave_balances(admin: dict = Depends(get_current_admin)):
    employees = await employees_collection.find(
        {"is_active": True},
        projection={"employee_info.name": 1, "employee_info.employee_id": 1, "leave_balances": 1},
    ).sort("employee_info.name", 1).to_list(length=None)
    return serialize_objectid(employees)


@router.put("/balances/{employee_id}")
async def update_employee_leave_balance(employee_id: str, balances: LeaveBalanceUpdate,
                                        admin: dict = Depends(get_current_admin)):
    """
    Set one or more of an employee's leave balances to new values.

    Each change is written to the ledger as an adjustment of the difference
    between the current and the requested balance, and the same difference is
    applied to the cached balance on the employee.

    Raises:
        HTTPException:
            - 400: If the ID is malformed or no balances were sent
            - 404: If the employee does not exist
    """
    oid = to_object_id(employee_id, "Employee ID")
    targets = balances.model_dump(exclude_none=True)
    if not targets:
        raise HTTPException(status_code=400, detail="No valid leave balance updates provided.")

    employee = await employees_collection.find_one({"_id": oid}, projection={"_id": 1})
    if not employee:
        raise get_unknown_entity_exception("Employee")

    await set_leave_balances(oid, targets, admin["_id"], adjustment_id=str(ObjectId()))
    await log_admin_activity(str(admin["_id"]), "leave_balance", "adjusted", "success", employee_id)

    updated = await employees_collection.find_one(
        {"_id": oid},
        projection={"employee_info.name": 1, "employee_info.employee_id": 1, "leave_balances": 1},
    )
    return {"message": "Leave balances updated successfully.", "employee": serialize_objectid(updated)}


@router.get("/ledger/{employee_id}")
async def get_leave_ledger(employee_id: str, admin: dict = Depends(get_current_admin)):
    """
    The full leave ledger for one employee, newest entry first, with the
    balances recomputed from it alongside the cached balances.
    """
    oid = to_object_id(employee_id, "Employee ID")
    employee = await employees_collection.find_one({"_id": oid}, projection={"leave_balances": 1})
    if not employee:
        raise get_unknown_entity_exception("Employee")

    entries = await leave_ledger_collection.find({"employee": oid}).sort("created_at", -1).to_list(length=None)
    return {
        "entries": serialize_objectid(entries),
        "ledger_balances": await get_ledger_balances(oid),
        "cached_balances": employee.get("leave_balances") or {},
    }
