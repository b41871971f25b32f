from datetime import datetime, timezone
from typing import Optional, Literal

from fastapi import APIRouter, HTTPException, Depends, Query, status

from hrportal.db import tasks_collection
from hrportal.models.tasks import Task, TaskStatus
from hrportal.schemas.task import CreateTask, UpdateTask, TaskStatusUpdate
from hrportal.utils.app_utils import get_current_employee, to_object_id, serialize_objectid
from hrportal.utils.task_utils import list_tasks, change_task_status

UTC = timezone.utc

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_my_task(task_data: CreateTask, employee: dict = Depends(get_current_employee)):
    """Create a task assigned to the logged-in employee."""
    info = employee["employee_info"]
    task = Task(
        **task_data.model_dump(),
        assignee_object_id=employee["_id"],
        assignee_employee_id=info["employee_id"],
        assignee_name=info["name"],
        created_by_object_id=employee["_id"],
        created_by_model="Employee",
    )
    task_dict = task.model_dump()
    result = await tasks_collection.insert_one(task_dict)
    task_dict["_id"] = result.inserted_id
    return serialize_objectid(task_dict)


@router.get("")
async def get_my_tasks(
    status: Optional[Literal["Open", "Completed"]] = Query("Open"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    employee: dict = Depends(get_current_employee),
):
    return await list_tasks({"assignee_object_id": employee["_id"]}, status, page, limit)


@router.put("/{task_id}")
async def update_my_task(task_id: str, task_data: UpdateTask, employee: dict = Depends(get_current_employee)):
    """
    Edit one of the logged-in employee's own open tasks.

    Raises:
        HTTPException:
            - 400: If the ID is malformed, the task name is blank, or the task is completed
            - 404: If the task does not exist or belongs to someone else
    """
    oid = to_object_id(task_id, "Task ID")
    task = await tasks_collection.find_one({"_id": oid, "assignee_object_id": employee["_id"]})
    if not task:
        raise HTTPException(status_code=404, detail="Task not found or you do not have permission to edit it.")
    if task["status"] == TaskStatus.COMPLETED.value:
        raise HTTPException(status_code=400, detail="Cannot update a completed task. Reopen it first.")

    updates = task_data.model_dump(exclude_unset=True)
    if "task_name" in updates and not (updates["task_name"] or "").strip():
        raise HTTPException(status_code=400, detail="Task Name cannot be empty.")

    updates["updated_at"] = datetime.now(UTC)
    await tasks_collection.update_one({"_id": oid}, {"$set": updates})
    return serialize_objectid(await tasks_collection.find_one({"_id": oid}))


@router.patch("/{task_id}/status")
async def update_my_task_status(task_id: str, status_data: TaskStatusUpdate,
                                employee: dict = Depends(get_current_employee)):
    query = {"_id": to_object_id(task_id, "Task ID"), "assignee_object_id": employee["_id"]}
    return await change_task_status(query, status_data.status)
