from bson import ObjectId
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

UTC = timezone.utc


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskStatus(str, Enum):
    OPEN = "Open"
    COMPLETED = "Completed"


class Task(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, use_enum_values=True)

    task_name: str
    description: Optional[str] = None
    assignee_object_id: ObjectId
    assignee_employee_id: str
    assignee_name: str
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.OPEN
    completed_at: Optional[datetime] = None
    created_by_object_id: ObjectId
    created_by_model: str  # Admin or Employee
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
