import logging
import re
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query, status
from pymongo.errors import DuplicateKeyError

from hrportal.db import employees_collection
from hrportal.exceptions import get_unknown_entity_exception
from hrportal.models.employees import Employee
from hrportal.schemas.employee import CreateEmployee, EditEmployee
from hrportal.utils.activity_utils import log_admin_activity
from hrportal.utils.app_utils import (get_current_admin, hash_password, to_object_id, serialize_objectid,
                                      clean_empty_strings, flatten_for_set, get_page_bounds, total_pages)
from hrportal.utils.leave_utils import credit_opening_balances

UTC = timezone.utc

logger = logging.getLogger(__name__)

router = APIRouter()

EMPLOYEE_PROJECTION = {"employee_info.password": 0}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(employee_data: CreateEmployee, admin: dict = Depends(get_current_admin)):
    """
    Create a new employee record.

    The password is stored as a bcrypt hash and any initial leave balances are
    written to the leave ledger as opening credits.

    Args:
        employee_data (CreateEmployee): The employee's nested profile sections.
        admin (dict): The authenticated admin.
    Returns:
        dict: The created employee, without the password hash.
    Raises:
        HTTPException: 400 if the employee ID or email is already in use.
    """
    data = clean_empty_strings(employee_data.model_dump())
    info = data["employee_info"]

    existing = await employees_collection.find_one({
        "$or": [
            {"employee_info.employee_id": info["employee_id"]},
            {"employee_info.email": info["email"].lower()},
        ]
    })
    if existing:
        raise HTTPException(status_code=400, detail="An employee with this ID or email already exists.")

    info["email"] = info["email"].lower()
    info["password"] = hash_password(info["password"])
    data["leave_balances"] = employee_data.leave_balances.model_dump()

    employee = Employee(**data)
    try:
        result = await employees_collection.insert_one(employee.model_dump())
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="An employee with this ID or email already exists.")

    await credit_opening_balances(result.inserted_id, data["leave_balances"], created_by=admin["_id"])
    await log_admin_activity(str(admin["_id"]), "employee", "created", "success", str(result.inserted_id))

    created = await employees_collection.find_one({"_id": result.inserted_id}, projection=EMPLOYEE_PROJECTION)
    return serialize_objectid(created)


@router.get("")
async def list_employees(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Match on name or employee ID"),
    is_active: Optional[bool] = Query(None),
    admin: dict = Depends(get_current_admin),
):
    """
    List employees, newest first, with optional search and paging.

    Returns:
        dict: employees, current_page, total_pages and total_employees.
    """
    page, limit, skip = get_page_bounds(page, limit)

    query = {}
    if search:
        query["$or"] = [
            {"employee_info.name": {"$regex": re.escape(search), "$options": "i"}},
            {"employee_info.employee_id": {"$regex": re.escape(search), "$options": "i"}},
        ]
    if is_active is not None:
        query["is_active"] = is_active

    total = await employees_collection.count_documents(query)
    cursor = employees_collection.find(query, projection=EMPLOYEE_PROJECTION) \
        .sort("created_at", -1).skip(skip).limit(limit)
    employees = await cursor.to_list(length=limit)

    return {
        "employees": serialize_objectid(employees),
        "current_page": page,
        "total_pages": total_pages(total, limit),
        "total_employees": total,
    }


@router.get("/{employee_id}")
async def get_employee(employee_id: str, admin: dict = Depends(get_current_admin)):
    employee = await employees_collection.find_one({"_id": to_object_id(employee_id, "employee ID")},
                                                   projection=EMPLOYEE_PROJECTION)
    if not employee:
        raise get_unknown_entity_exception("Employee")
    return serialize_objectid(employee)


@router.put("/{employee_id}")
async def update_employee(employee_id: str, employee_data: EditEmployee, admin: dict = Depends(get_current_admin)):
    """
    Update an employee's profile.

    Only the fields sent are changed; nested sections are merged rather than
    replaced. Sending an empty password leaves the current one in place. The
    employee ID and leave balances cannot be changed here.

    Raises:
        HTTPException:
            - 400: If the ID is malformed, nothing was sent, or the email is taken
            - 404: If the employee does not exist
    """
    oid = to_object_id(employee_id, "employee ID")
    employee = await employees_collection.find_one({"_id": oid})
    if not employee:
        raise get_unknown_entity_exception("Employee")

    data = clean_empty_strings(employee_data.model_dump(exclude_unset=True))
    if not data:
        raise HTTPException(status_code=400, detail="Employee data is missing.")

    info = data.get("employee_info") or {}
    if "password" in info:
        info["password"] = hash_password(info["password"])
    if "email" in info:
        info["email"] = info["email"].lower()
        clash = await employees_collection.find_one({"employee_info.email": info["email"], "_id": {"$ne": oid}})
        if clash:
            raise HTTPException(status_code=400, detail="Another employee already uses this email.")

    updates = flatten_for_set(data)
    updates["updated_at"] = datetime.now(UTC)
    try:
        await employees_collection.update_one({"_id": oid}, {"$set": updates})
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Another employee already uses this email.")

    logger.info("Employee %s updated by admin %s", employee_id, admin["_id"])
    updated = await employees_collection.find_one({"_id": oid}, projection=EMPLOYEE_PROJECTION)
    return serialize_objectid(updated)


@router.delete("/{employee_id}")
async def delete_employee(employee_id: str, admin: dict = Depends(get_current_admin)):
    result = await employees_collection.delete_one({"_id": to_object_id(employee_id, "employee ID")})
    if result.deleted_count == 0:
        raise get_unknown_entity_exception("Employee")

    await log_admin_activity(str(admin["_id"]), "employee", "deleted", "success", employee_id)
    return {"message": "Employee deleted successfully"}
