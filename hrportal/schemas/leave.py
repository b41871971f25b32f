from datetime import date
from typing import Optional, Literal

from pydantic import BaseModel, ConfigDict, Field

from hrportal.models.leaves import LeaveType, Session


class ApplyLeave(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    leave_type: LeaveType
    from_date: date
    to_date: date
    from_session: Session = Session.FIRST_HALF
    to_session: Session = Session.SECOND_HALF
    reason: str = Field(..., min_length=1)
    applying_to: Optional[str] = None


class LeaveAction(BaseModel):
    status: Literal["Approved", "Rejected"]
    admin_remarks: Optional[str] = None


class LeaveBalanceUpdate(BaseModel):
    earned: Optional[float] = Field(None, ge=0)
    sick: Optional[float] = Field(None, ge=0)
    casual: Optional[float] = Field(None, ge=0)
