from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional, List, Dict

UTC = timezone.utc

LEAVE_TYPES = ("earned", "sick", "casual")


class EmployeeInfo(BaseModel):
    name: str
    email: str
    number: Optional[str] = None
    employee_id: str
    password: str
    gender: Optional[str] = None
    title: Optional[str] = None
    profile_picture: str = ""


class JobDetails(BaseModel):
    current_position: Optional[str] = None
    department: Optional[str] = None
    reports_to: Optional[str] = None


class IdentificationDetails(BaseModel):
    aadhar_card_no: Optional[str] = None
    pan_card_no: Optional[str] = None


class Employee(BaseModel):
    employee_info: EmployeeInfo
    personal_info: Dict = Field(default_factory=dict)
    joining_details: Dict = Field(default_factory=dict)
    job_details: JobDetails = Field(default_factory=JobDetails)
    identification_details: IdentificationDetails = Field(default_factory=IdentificationDetails)
    education_details: List[Dict] = Field(default_factory=list)
    addresses: Dict = Field(default_factory=dict)
    background_check: Dict = Field(default_factory=dict)
    is_active: bool = True
    # cache of the leave ledger, see utils/leave_utils.py
    leave_balances: Dict[str, float] = Field(default_factory=lambda: {t: 0 for t in LEAVE_TYPES})
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
