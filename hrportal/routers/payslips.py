from fastapi import APIRouter, HTTPException, Depends, Query

from hrportal.db import payslips_collection
from hrportal.utils.app_utils import (get_current_employee, to_object_id, serialize_objectid,
                                      get_page_bounds, total_pages)
from hrportal.utils.export_utils import PDF_MEDIA_TYPE, attachment, render_payslip_pdf
from hrportal.utils.payroll_utils import build_payslip_context, payslip_filename

router = APIRouter()


async def _find_released_payslip(payslip_id: str, employee: dict) -> dict:
    payslip = await payslips_collection.find_one({
        "_id": to_object_id(payslip_id, "Payslip ID"),
        "employee": employee["_id"],
        "is_released": True,
    })
    if not payslip:
        raise HTTPException(status_code=404, detail="Payslip not found or not yet released.")
    return payslip


@router.get("")
async def get_my_payslips(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    employee: dict = Depends(get_current_employee),
):
    """
    List the logged-in employee's released payslips, latest pay period first.

    Payslips that have been generated but not released are not shown.
    """
    page, limit, skip = get_page_bounds(page, limit)
    query = {"employee": employee["_id"], "is_released": True}

    total = await payslips_collection.count_documents(query)
    payslips = await payslips_collection.find(query).sort([("year", -1), ("month", -1)]) \
        .skip(skip).limit(limit).to_list(length=limit)

    return {
        "payslips": serialize_objectid(payslips),
        "current_page": page,
        "total_pages": total_pages(total, limit),
        "total_payslips": total,
    }


@router.get("/{payslip_id}")
async def get_my_payslip(payslip_id: str, employee: dict = Depends(get_current_employee)):
    return serialize_objectid(await _find_released_payslip(payslip_id, employee))


@router.get("/{payslip_id}/download")
async def download_my_payslip(payslip_id: str, employee: dict = Depends(get_current_employee)):
    payslip = await _find_released_payslip(payslip_id, employee)
    content = render_payslip_pdf(build_payslip_context(payslip))
    return attachment(content, PDF_MEDIA_TYPE, payslip_filename(payslip))
