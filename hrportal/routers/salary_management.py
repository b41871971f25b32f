import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Depends, status
from pymongo.errors import DuplicateKeyError

from hrportal.db import salaries_collection, employees_collection
from hrportal.exceptions import get_unknown_entity_exception
from hrportal.models.salaries import Salary
from hrportal.schemas.payroll import CreateSalary, UpdateSalary
from hrportal.utils.activity_utils import log_admin_activity
from hrportal.utils.app_utils import get_current_admin, to_object_id, serialize_objectid

UTC = timezone.utc

logger = logging.getLogger(__name__)

router = APIRouter()

EMPLOYEE_SUMMARY = {"employee_info.name": 1, "employee_info.employee_id": 1, "is_active": 1}


async def _with_employee(salaries: list) -> list:
    """Replace each salary's employee reference with the employee's name, ID and status."""
    employees = await employees_collection.find(
        {"_id": {"$in": [salary["employee"] for salary in salaries]}},
        projection=EMPLOYEE_SUMMARY,
    ).to_list(length=None)
    by_id = {employee["_id"]: employee for employee in employees}
    for salary in salaries:
        employee = by_id.get(salary["employee"])
        salary["employee"] = serialize_objectid(employee) if employee else str(salary["employee"])
    return serialize_objectid(salaries)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_salary(salary_data: CreateSalary, admin: dict = Depends(get_current_admin)):
    """
    Record salary and bank details for an employee.

    Args:
        salary_data (CreateSalary): employee document ID, monthly salary, professional tax and bank details.
        admin (dict): The authenticated admin.
    Returns:
        dict: The stored salary record with the employee's summary.
    Raises:
        HTTPException:
            - 400: If the employee is inactive or already has a salary record
            - 404: If the employee does not exist
    """
    employee_oid = to_object_id(salary_data.employee_id, "Employee ID")
    employee = await employees_collection.find_one({"_id": employee_oid}, projection=EMPLOYEE_SUMMARY)
    if not employee:
        raise get_unknown_entity_exception("Employee")
    if not employee.get("is_active", True):
        raise HTTPException(status_code=400, detail="Cannot add salary for an inactive employee.")

    if await salaries_collection.find_one({"employee": employee_oid}):
        raise HTTPException(status_code=400,
                            detail="Salary details already exist for this employee. Use update instead.")

    salary = Salary(
        employee=employee_oid,
        employee_id=employee["employee_info"]["employee_id"],
        monthly_salary=salary_data.monthly_salary,
        professional_tax=salary_data.professional_tax,
        bank_details=salary_data.bank_details,
    )
    salary_dict = salary.model_dump()
    try:
        result = await salaries_collection.insert_one(salary_dict)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Salary details already exist for this employee.")
    salary_dict["_id"] = result.inserted_id

    await log_admin_activity(str(admin["_id"]), "salary", "created", "success", str(result.inserted_id))
    return (await _with_employee([salary_dict]))[0]


@router.get("")
async def get_all_salaries(admin: dict = Depends(get_current_admin)):
    salaries = await salaries_collection.find({}).sort("created_at", -1).to_list(length=None)
    return await _with_employee(salaries)


@router.get("/employee/{employee_id}")
async def get_salary_by_employee(employee_id: str, admin: dict = Depends(get_current_admin)):
    salary = await salaries_collection.find_one({"employee": to_object_id(employee_id, "Employee ID")})
    if not salary:
        raise HTTPException(status_code=404, detail="Salary details not found for this employee.")
    return (await _with_employee([salary]))[0]


@router.put("/{salary_id}")
async def update_salary(salary_id: str, salary_data: UpdateSalary, admin: dict = Depends(get_current_admin)):
    """
    Change the salary figures or bank details on a salary record.

    Payslips already generated keep the figures they were generated with.
    """
    oid = to_object_id(salary_id, "Salary Record ID")
    data = salary_data.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No update fields provided.")

    # bank_details is replaced as a whole
    updates = {**data, "updated_at": datetime.now(UTC)}
    result = await salaries_collection.update_one({"_id": oid}, {"$set": updates})
    if result.matched_count == 0:
        raise get_unknown_entity_exception("Salary record")

    logger.info("Salary record %s updated by admin %s", salary_id, admin["_id"])
    return (await _with_employee([await salaries_collection.find_one({"_id": oid})]))[0]


@router.delete("/{salary_id}")
async def delete_salary(salary_id: str, admin: dict = Depends(get_current_admin)):
    result = await salaries_collection.delete_one({"_id": to_object_id(salary_id, "Salary Record ID")})
    if result.deleted_count == 0:
        raise get_unknown_entity_exception("Salary record")

    await log_admin_activity(str(admin["_id"]), "salary", "deleted", "success", salary_id)
    return {"message": "Salary record deleted successfully."}
