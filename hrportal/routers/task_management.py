from datetime import datetime, timezone
from typing import Optional, Literal

from fastapi import APIRouter, HTTPException, Depends, Query, status

from hrportal.db import tasks_collection
from hrportal.exceptions import get_unknown_entity_exception
from hrportal.models.tasks import Task
from hrportal.schemas.task import AdminCreateTask, AdminUpdateTask, TaskStatusUpdate
from hrportal.utils.app_utils import get_current_admin, to_object_id, serialize_objectid
from hrportal.utils.task_utils import find_active_assignee, list_tasks, change_task_status

UTC = timezone.utc

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def admin_create_task(task_data: AdminCreateTask, admin: dict = Depends(get_current_admin)):
    """
    Create a task and assign it to an active employee.

    Args:
        task_data (AdminCreateTask): Task details and the assignee's employee ID string.
        admin (dict): The authenticated admin.
    Returns:
        dict: The created task.
    Raises:
        HTTPException: 404 if no active employee has the given employee ID.
    """
    assignee = await find_active_assignee(task_data.assignee_employee_id)

    task = Task(
        **task_data.model_dump(exclude={"assignee_employee_id"}),
        assignee_object_id=assignee["_id"],
        assignee_employee_id=assignee["employee_info"]["employee_id"],
        assignee_name=assignee["employee_info"]["name"],
        created_by_object_id=admin["_id"],
        created_by_model="Admin",
    )
    task_dict = task.model_dump()
    result = await tasks_collection.insert_one(task_dict)
    task_dict["_id"] = result.inserted_id
    return serialize_objectid(task_dict)


@router.get("")
async def admin_get_all_tasks(
    status: Optional[Literal["Open", "Completed"]] = Query("Open"),
    assignee_id: Optional[str] = Query(None, description="Filter by the assignee's employee document ID"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: dict = Depends(get_current_admin),
):
    query = {}
    if assignee_id:
        query["assignee_object_id"] = to_object_id(assignee_id, "assignee ID")
    return await list_tasks(query, status, page, limit)


@router.put("/{task_id}")
async def admin_update_task(task_id: str, task_data: AdminUpdateTask, admin: dict = Depends(get_current_admin)):
    """
    Edit a task's details, optionally reassigning it to another active employee.

    Raises:
        HTTPException:
            - 400: If the ID is malformed or the task name is blank
            - 404: If the task or the new assignee does not exist
    """
    oid = to_object_id(task_id, "Task ID")
    task = await tasks_collection.find_one({"_id": oid})
    if not task:
        raise get_unknown_entity_exception("Task")

    updates = task_data.model_dump(exclude_unset=True)
    if "task_name" in updates and not (updates["task_name"] or "").strip():
        raise HTTPException(status_code=400, detail="Task Name cannot be empty.")

    new_assignee = updates.pop("assignee_employee_id", None)
    if new_assignee is not None:
        if new_assignee == "":
            raise HTTPException(status_code=400, detail="Assignee cannot be removed. Reassign if necessary.")
        if new_assignee != task["assignee_employee_id"]:
            assignee = await find_active_assignee(new_assignee)
            updates["assignee_object_id"] = assignee["_id"]
            updates["assignee_employee_id"] = assignee["employee_info"]["employee_id"]
            updates["assignee_name"] = assignee["employee_info"]["name"]

    updates["updated_at"] = datetime.now(UTC)
    await tasks_collection.update_one({"_id": oid}, {"$set": updates})
    return serialize_objectid(await tasks_collection.find_one({"_id": oid}))


@router.patch("/{task_id}/status")
async def admin_update_task_status(task_id: str, status_data: TaskStatusUpdate,
                                   admin: dict = Depends(get_current_admin)):
    return await change_task_status({"_id": to_object_id(task_id, "Task ID")}, status_data.status)


@router.delete("/{task_id}")
async def admin_delete_task(task_id: str, admin: dict = Depends(get_current_admin)):
    result = await tasks_collection.delete_one({"_id": to_object_id(task_id, "Task ID")})
    if result.deleted_count == 0:
        raise get_unknown_entity_exception("Task")
    return {"message": "Task deleted successfully."}
