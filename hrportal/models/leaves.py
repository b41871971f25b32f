from bson import ObjectId
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

UTC = timezone.utc


class LeaveType(str, Enum):
    EARNED = "earned"
    SICK = "sick"
    CASUAL = "casual"


class Session(str, Enum):
    FIRST_HALF = "Session 1"
    SECOND_HALF = "Session 2"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LedgerEntryType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class Leave(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, use_enum_values=True)

    employee: ObjectId
    leave_type: LeaveType
    from_date: datetime
    to_date: datetime
    from_session: Session
    to_session: Session
    reason: str
    applying_to: Optional[str] = None
    status: LeaveStatus = LeaveStatus.PENDING
    number_of_days: float = Field(..., ge=0.5)
    action_taken_by: Optional[ObjectId] = None
    action_taken_at: Optional[datetime] = None
    admin_remarks: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LeaveLedgerEntry(BaseModel):
    """An immutable movement of leave days; balances are the sum of amounts."""
    model_config = ConfigDict(arbitrary_types_allowed=True, use_enum_values=True, frozen=True)

    employee: ObjectId
    leave_type: LeaveType
    amount: float  # positive for credits, negative for debits
    entry_type: LedgerEntryType
    reason: str
    source_key: str
    leave_request: Optional[ObjectId] = None
    created_by: Optional[ObjectId] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
