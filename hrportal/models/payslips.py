from bson import ObjectId
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

UTC = timezone.utc


class Earnings(BaseModel):
    basic: float
    hra: float
    medical_allowance: float
    special_allowance: float
    total: float


class Deductions(BaseModel):
    professional_tax: float
    total: float


class SnapshotBankDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None


class EmployeeSnapshot(BaseModel):
    """Employee fields frozen at the moment the payslip was generated."""
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    employee_id: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    pan_number: Optional[str] = None
    bank_details: SnapshotBankDetails = Field(default_factory=SnapshotBankDetails)


class Payslip(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    employee: ObjectId
    employee_id: str
    salary_details: ObjectId
    month: int = Field(..., ge=1, le=12)
    year: int
    earnings: Earnings
    deductions: Deductions
    net_pay: float
    employee_snapshot: EmployeeSnapshot
    is_released: bool = False
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    released_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
