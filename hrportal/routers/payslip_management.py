import logging
from datetime import datetime, timezone
from typing import Optional, Literal

from fastapi import APIRouter, HTTPException, Depends, Query, status
from pymongo.errors import DuplicateKeyError

from hrportal.db import payslips_collection, employees_collection, salaries_collection
from hrportal.exceptions import get_unknown_entity_exception
from hrportal.models.payslips import Payslip
from hrportal.schemas.payroll import GeneratePayslip
from hrportal.utils.activity_utils import log_admin_activity
from hrportal.utils.app_utils import (get_current_admin, to_object_id, serialize_objectid,
                                      get_page_bounds, total_pages)
from hrportal.utils.export_utils import (PDF_MEDIA_TYPE, XLSX_MEDIA_TYPE, attachment, render_payslip_pdf,
                                         render_payslip_register_xlsx)
from hrportal.utils.payroll_utils import (calculate_payslip_details, build_employee_snapshot,
                                          build_payslip_context, payslip_filename)

UTC = timezone.utc

logger = logging.getLogger(__name__)

router = APIRouter()

PAYSLIP_SORT = [("year", -1), ("month", -1), ("created_at", -1)]


async def _with_employee(payslips: list) -> list:
    employees = await employees_collection.find(
        {"_id": {"$in": [payslip["employee"] for payslip in payslips]}},
        projection={"employee_info.name": 1, "employee_info.employee_id": 1},
    ).to_list(length=None)
    by_id = {employee["_id"]: employee for employee in employees}
    for payslip in payslips:
        employee = by_id.get(payslip["employee"])
        payslip["employee"] = serialize_objectid(employee) if employee else str(payslip["employee"])
    return serialize_objectid(payslips)


@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_payslip(payslip_data: GeneratePayslip, admin: dict = Depends(get_current_admin)):
    """
    Generate an employee's payslip for a month from their current salary record.

    The employee's name, designation, department, PAN and bank details are
    copied onto the payslip, so later profile edits do not change it. A new
    payslip starts unreleased.

    Args:
        payslip_data (GeneratePayslip): employee document ID, month (1-12) and year.
        admin (dict): The authenticated admin.
    Returns:
        dict: A success message and the generated payslip.
    Raises:
        HTTPException:
            - 400: If a payslip for that month already exists, or the salary record has no bank details
            - 404: If the employee or their salary record does not exist
    """
    employee_oid = to_object_id(payslip_data.employee_id, "Employee ID")
    month, year = payslip_data.month, payslip_data.year

    duplicate = f"Payslip for {month}/{year} already exists for this employee."
    if await payslips_collection.find_one({"employee": employee_oid, "month": month, "year": year}):
        raise HTTPException(status_code=400, detail=duplicate)

    employee = await employees_collection.find_one({"_id": employee_oid}, projection={"employee_info.password": 0})
    if not employee:
        raise get_unknown_entity_exception("Employee")
    salary = await salaries_collection.find_one({"employee": employee_oid})
    if not salary:
        raise HTTPException(status_code=404,
                            detail="Salary details not found for this employee. Cannot generate payslip.")
    if not salary.get("bank_details"):
        raise HTTPException(status_code=400,
                            detail="Bank details not found in the employee salary record. "
                                   "Please update salary details first.")

    try:
        details = calculate_payslip_details(salary["monthly_salary"], salary.get("professional_tax", 0))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    payslip = Payslip(
        employee=employee_oid,
        employee_id=employee["employee_info"]["employee_id"],
        salary_details=salary["_id"],
        month=month,
        year=year,
        earnings=details["earnings"],
        deductions=details["deductions"],
        net_pay=details["net_pay"],
        employee_snapshot=build_employee_snapshot(employee, salary["bank_details"]),
    )
    payslip_dict = payslip.model_dump()
    try:
        result = await payslips_collection.insert_one(payslip_dict)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail=duplicate)
    payslip_dict["_id"] = result.inserted_id

    await log_admin_activity(str(admin["_id"]), "payslip", "generated", "success", str(result.inserted_id))
    return {"message": "Payslip generated successfully.", "payslip": serialize_objectid(payslip_dict)}


@router.get("")
async def get_payslips(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    employee_id: Optional[str] = Query(None, description="Filter by employee document ID"),
    status: Optional[Literal["Released", "Pending"]] = Query(None),
    admin: dict = Depends(get_current_admin),
):
    """
    List payslips, latest pay period first.

    Returns:
        dict: payslips, current_page, total_pages and total_payslips.
    """
    page, limit, skip = get_page_bounds(page, limit)

    query = {}
    if employee_id:
        query["employee"] = to_object_id(employee_id, "Employee ID")
    if status == "Released":
        query["is_released"] = True
    elif status == "Pending":
        query["is_released"] = False

    total = await payslips_collection.count_documents(query)
    payslips = await payslips_collection.find(query).sort(PAYSLIP_SORT).skip(skip).limit(limit) \
        .to_list(length=limit)

    return {
        "payslips": await _with_employee(payslips),
        "current_page": page,
        "total_pages": total_pages(total, limit),
        "total_payslips": total,
    }


@router.get("/export")
async def export_payslips(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000),
    admin: dict = Depends(get_current_admin),
):
    """Download every payslip for a pay period as an Excel register."""
    payslips = await payslips_collection.find({"month": month, "year": year}) \
        .sort("employee_id", 1).to_list(length=None)
    content = render_payslip_register_xlsx(payslips)
    return attachment(content, XLSX_MEDIA_TYPE, f"Payslips_{month}_{year}.xlsx")


@router.get("/{payslip_id}")
async def get_payslip(payslip_id: str, admin: dict = Depends(get_current_admin)):
    payslip = await payslips_collection.find_one({"_id": to_object_id(payslip_id, "Payslip ID")})
    if not payslip:
        raise get_unknown_entity_exception("Payslip")
    return (await _with_employee([payslip]))[0]


@router.patch("/{payslip_id}/release")
async def release_payslip(payslip_id: str, admin: dict = Depends(get_current_admin)):
    """
    Make a payslip visible to its employee.

    Release is one-way; there is no endpoint that takes it back.

    Raises:
        HTTPException:
            - 400: If the ID is malformed or the payslip is already released
            - 404: If the payslip does not exist
    """
    oid = to_object_id(payslip_id, "Payslip ID")
    now = datetime.now(UTC)
    result = await payslips_collection.update_one(
        {"_id": oid, "is_released": False},
        {"$set": {"is_released": True, "released_at": now, "updated_at": now}},
    )
    if result.modified_count == 0:
        if not await payslips_collection.find_one({"_id": oid}, projection={"_id": 1}):
            raise get_unknown_entity_exception("Payslip")
        raise HTTPException(status_code=400, detail="Payslip is already released.")

    await log_admin_activity(str(admin["_id"]), "payslip", "released", "success", payslip_id)
    payslip = await payslips_collection.find_one({"_id": oid})
    return {"message": "Payslip released successfully.", "payslip": serialize_objectid(payslip)}


@router.delete("/{payslip_id}")
async def delete_payslip(payslip_id: str, admin: dict = Depends(get_current_admin)):
    result = await payslips_collection.delete_one({"_id": to_object_id(payslip_id, "Payslip ID")})
    if result.deleted_count == 0:
        raise get_unknown_entity_exception("Payslip")

    await log_admin_activity(str(admin["_id"]), "payslip", "deleted", "success", payslip_id)
    return {"message": "Payslip deleted successfully."}


@router.get("/{payslip_id}/download")
async def download_payslip(payslip_id: str, admin: dict = Depends(get_current_admin)):
    payslip = await payslips_collection.find_one({"_id": to_object_id(payslip_id, "Payslip ID")})
    if not payslip:
        raise get_unknown_entity_exception("Payslip")

    content = render_payslip_pdf(build_payslip_context(payslip))
    return attachment(content, PDF_MEDIA_TYPE, payslip_filename(payslip))
