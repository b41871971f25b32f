from typing import Optional

from pydantic import BaseModel, Field

from hrportal.models.salaries import BankDetails
from hrportal.utils.payroll_utils import MAX_AMOUNT


class CreateSalary(BaseModel):
    employee_id: str  # employee document id
    monthly_salary: float = Field(..., ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    professional_tax: float = Field(0, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    bank_details: Optional[BankDetails] = None


class UpdateSalary(BaseModel):
    monthly_salary: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    professional_tax: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)
    bank_details: Optional[BankDetails] = None


class GeneratePayslip(BaseModel):
    employee_id: str  # employee document id
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000)
