from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

UTC = timezone.utc


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LEAVE = "Leave"


class Attendance(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, use_enum_values=True)

    employee: ObjectId
    employee_id: str
    date: datetime  # start of the business day, naive UTC
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    status: AttendanceStatus = AttendanceStatus.ABSENT
    is_late: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
