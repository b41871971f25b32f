from datetime import date, datetime
from typing import Annotated, Optional, List, Literal

from pydantic import BaseModel, BeforeValidator, EmailStr, Field


def _date_to_datetime(v):
    # BSON has no date type
    if isinstance(v, str) and len(v) == 10:
        v = date.fromisoformat(v)
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime.combine(v, datetime.min.time())
    return v


StoredDate = Annotated[datetime, BeforeValidator(_date_to_datetime)]


class EmployeeInfoIn(BaseModel):
    name: str
    email: EmailStr
    number: Optional[str] = None
    employee_id: str
    password: str = Field(..., min_length=1)
    gender: Optional[Literal["Male", "Female", "Other"]] = None
    title: Optional[Literal["Mr.", "Ms.", "Mrs."]] = None
    profile_picture: Optional[str] = None


class EmployeeInfoEdit(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    number: Optional[str] = None
    password: Optional[str] = None
    gender: Optional[Literal["Male", "Female", "Other"]] = None
    title: Optional[Literal["Mr.", "Ms.", "Mrs."]] = None
    profile_picture: Optional[str] = None


class PersonalInfo(BaseModel):
    dob: Optional[StoredDate] = None
    fathers_name: Optional[str] = None
    marital_status: Optional[Literal["Single", "Married", "Divorced", "Widowed"]] = None
    marriage_date: Optional[StoredDate] = None
    spouse_name: Optional[str] = None
    nationality: Optional[str] = None
    place_of_birth: Optional[str] = None
    country_of_origin: Optional[str] = None
    religion: Optional[str] = None
    is_international_employee: Optional[bool] = None
    is_physically_challenged: Optional[bool] = None
    personal_email: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    identification_mark: Optional[str] = None
    caste: Optional[str] = None
    hobby: Optional[str] = None
    is_director: Optional[bool] = None


class JoiningDetails(BaseModel):
    joining_date: Optional[StoredDate] = None
    confirmation_date: Optional[StoredDate] = None
    status: Optional[Literal["Confirmed", "Pending", "Probation"]] = None
    probation_period: Optional[str] = None
    notice_period: Optional[str] = None
    current_company_experience: Optional[str] = None
    previous_experience: Optional[str] = None
    total_experience: Optional[str] = None
    referred_by: Optional[str] = None


class JobDetailsIn(BaseModel):
    current_position: Optional[str] = None
    department: Optional[str] = None
    reports_to: Optional[str] = None


class IdentificationDetailsIn(BaseModel):
    aadhar_card_no: Optional[str] = None
    pan_card_no: Optional[str] = None


class Education(BaseModel):
    institute_name: Optional[str] = None
    qualification: Optional[str] = None
    grade: Optional[str] = None
    area: Optional[str] = None
    from_date: Optional[StoredDate] = None
    to_date: Optional[StoredDate] = None


class Address(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    pincode: Optional[str] = None
    phone_number1: Optional[str] = None
    phone_number2: Optional[str] = None
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    other_contact: Optional[str] = None


class Addresses(BaseModel):
    present: Optional[Address] = None
    permanent: Optional[Address] = None


class BackgroundCheck(BaseModel):
    verification_status: Optional[Literal["Pending", "Completed", "Failed"]] = None
    verification_completed_on: Optional[StoredDate] = None
    agency_name: Optional[str] = None
    remarks: Optional[str] = None


class LeaveBalances(BaseModel):
    earned: float = Field(0, ge=0)
    sick: float = Field(0, ge=0)
    casual: float = Field(0, ge=0)


class CreateEmployee(BaseModel):
    employee_info: EmployeeInfoIn
    personal_info: Optional[PersonalInfo] = None
    joining_details: Optional[JoiningDetails] = None
    job_details: Optional[JobDetailsIn] = None
    identification_details: Optional[IdentificationDetailsIn] = None
    education_details: List[Education] = Field(default_factory=list)
    addresses: Optional[Addresses] = None
    background_check: Optional[BackgroundCheck] = None
    is_active: bool = True
    leave_balances: LeaveBalances = Field(default_factory=LeaveBalances)


class EditEmployee(BaseModel):
    employee_info: Optional[EmployeeInfoEdit] = None
    personal_info: Optional[PersonalInfo] = None
    joining_details: Optional[JoiningDetails] = None
    job_details: Optional[JobDetailsIn] = None
    identification_details: Optional[IdentificationDetailsIn] = None
    education_details: Optional[List[Education]] = None
    addresses: Optional[Addresses] = None
    background_check: Optional[BackgroundCheck] = None
    is_active: Optional[bool] = None
