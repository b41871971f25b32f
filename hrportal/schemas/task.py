from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from hrportal.models.tasks import TaskPriority, TaskStatus


class CreateTask(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    task_name: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)


class AdminCreateTask(CreateTask):
    assignee_employee_id: str


class UpdateTask(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    task_name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None


class AdminUpdateTask(UpdateTask):
    assignee_employee_id: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: TaskStatus
