from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException

from hrportal.db import tasks_collection, employees_collection
from hrportal.exceptions import get_unknown_entity_exception
from hrportal.models.tasks import TaskStatus
from hrportal.utils.app_utils import serialize_objectid, get_page_bounds, total_pages

UTC = timezone.utc


async def find_active_assignee(employee_id: str) -> dict:
    assignee = await employees_collection.find_one(
        {"employee_info.employee_id": employee_id, "is_active": True},
        projection={"employee_info.name": 1, "employee_info.employee_id": 1},
    )
    if not assignee:
        raise HTTPException(status_code=404, detail=f"Active employee with ID '{employee_id}' not found.")
    return assignee


async def list_tasks(query: dict, status: Optional[str], page: int, limit: int) -> dict:
    """
    Page through tasks matching query, Open by default.

    Open tasks come soonest due first; completed ones most recently completed first.
    """
    page, limit, skip = get_page_bounds(page, limit)
    completed = status == TaskStatus.COMPLETED.value
    query = {**query, "status": TaskStatus.COMPLETED.value if completed else TaskStatus.OPEN.value}
    sort = [("completed_at", -1)] if completed else [("due_date", 1), ("created_at", -1)]

    total = await tasks_collection.count_documents(query)
    tasks = await tasks_collection.find(query).sort(sort).skip(skip).limit(limit).to_list(length=limit)
    return {
        "tasks": serialize_objectid(tasks),
        "current_page": page,
        "total_pages": total_pages(total, limit),
        "total_tasks": total,
    }


async def change_task_status(query: dict, new_status: str) -> dict:
    task = await tasks_collection.find_one(query)
    if not task:
        raise get_unknown_entity_exception("Task")
    if task["status"] == new_status:
        raise HTTPException(status_code=400, detail=f"Task is already {new_status.lower()}.")

    now = datetime.now(UTC)
    completed_at = now if new_status == TaskStatus.COMPLETED.value else None
    await tasks_collection.update_one(
        {"_id": task["_id"]},
        {"$set": {"status": new_status, "completed_at": completed_at, "updated_at": now}},
    )
    updated = await tasks_collection.find_one({"_id": task["_id"]})
    return serialize_objectid(updated)
