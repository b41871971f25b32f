from bson import ObjectId
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

UTC = timezone.utc


class AccountType(str, Enum):
    SAVINGS = "Savings"
    CURRENT = "Current"
    OTHER = "Other"


class PaymentType(str, Enum):
    ACCOUNT_TRANSFER = "Account Transfer"
    CHEQUE = "Cheque"
    CASH = "Cash"
    OTHER = "Other"


class BankDetails(BaseModel):
    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)

    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    branch_name: Optional[str] = None
    account_type: Optional[AccountType] = None
    payment_type: PaymentType = PaymentType.ACCOUNT_TRANSFER
    name_as_per_bank: Optional[str] = None


class Salary(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    employee: ObjectId
    employee_id: str
    monthly_salary: float = Field(..., ge=0)
    professional_tax: float = Field(0, ge=0)
    bank_details: Optional[BankDetails] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
