from hrportal.db import tasks_collection


async def test_admin_assigns_task_by_employee_id(admin_client, employee):
    response = await admin_client.post("/api/admin/tasks", json={
        "task_name": "Prepare Q1 report",
        "priority": "High",
        "due_date": "2025-03-31T12:00:00",
        "tags": ["finance"],
        "assignee_employee_id": "EMP001",
    })
    assert response.status_code == 201
    task = response.json()
    assert task["assignee_object_id"] == str(employee["_id"])
    assert task["assignee_name"] == "Asha Rao"
    assert task["status"] == "Open"
    assert task["created_by_model"] == "Admin"


async def test_admin_cannot_assign_to_inactive_or_unknown(admin_client, make_employee):
    await make_employee("EMP007", is_active=False)
    for employee_id in ("EMP007", "NOPE"):
        response = await admin_client.post("/api/admin/tasks",
                                           json={"task_name": "Audit", "assignee_employee_id": employee_id})
        assert response.status_code == 404


async def test_employee_creates_and_lists_own_tasks(employee_client, employee, make_employee, client_as):
    response = await employee_client.post("/api/employee/tasks", json={"task_name": "Update docs"})
    assert response.status_code == 201
    assert response.json()["priority"] == "Medium"
    assert response.json()["created_by_model"] == "Employee"

    listing = (await employee_client.get("/api/employee/tasks")).json()
    assert listing["total_tasks"] == 1
    assert listing["tasks"][0]["task_name"] == "Update docs"

    other = await make_employee("EMP002")
    async with client_as(other) as other_client:
        assert (await other_client.get("/api/employee/tasks")).json()["total_tasks"] == 0


async def test_status_toggle_sets_completed_at(employee_client):
    task_id = (await employee_client.post("/api/employee/tasks", json={"task_name": "Ship it"})).json()["_id"]

    done = await employee_client.patch(f"/api/employee/tasks/{task_id}/status", json={"status": "Completed"})
    assert done.status_code == 200
    assert done.json()["completed_at"] is not None

    again = await employee_client.patch(f"/api/employee/tasks/{task_id}/status", json={"status": "Completed"})
    assert again.status_code == 400
    assert again.json()["detail"] == "Task is already completed."

    completed = (await employee_client.get("/api/employee/tasks", params={"status": "Completed"})).json()
    assert completed["total_tasks"] == 1

    reopened = await employee_client.patch(f"/api/employee/tasks/{task_id}/status", json={"status": "Open"})
    assert reopened.json()["completed_at"] is None


async def test_employee_cannot_edit_completed_or_foreign_task(admin_client, employee_client, make_employee):
    other = await make_employee("EMP002")
    foreign = (await admin_client.post("/api/admin/tasks",
                                       json={"task_name": "Theirs", "assignee_employee_id": "EMP002"})).json()
    response = await employee_client.put(f"/api/employee/tasks/{foreign['_id']}", json={"task_name": "Mine now"})
    assert response.status_code == 404

    task_id = (await employee_client.post("/api/employee/tasks", json={"task_name": "Ship it"})).json()["_id"]
    await employee_client.patch(f"/api/employee/tasks/{task_id}/status", json={"status": "Completed"})
    response = await employee_client.put(f"/api/employee/tasks/{task_id}", json={"description": "late edit"})
    assert response.status_code == 400


async def test_admin_updates_reassigns_and_deletes(admin_client, employee, make_employee):
    await make_employee("EMP002", name="Bala Iyer")
    task_id = (await admin_client.post("/api/admin/tasks",
                                       json={"task_name": "Audit", "assignee_employee_id": "EMP001"})).json()["_id"]

    blank = await admin_client.put(f"/api/admin/tasks/{task_id}", json={"task_name": "  "})
    assert blank.status_code == 400

    response = await admin_client.put(f"/api/admin/tasks/{task_id}",
                                      json={"description": "Quarterly", "assignee_employee_id": "EMP002"})
    assert response.status_code == 200
    assert response.json()["assignee_name"] == "Bala Iyer"
    assert response.json()["description"] == "Quarterly"

    by_assignee = (await admin_client.get("/api/admin/tasks", params={"assignee_id": str(employee["_id"])})).json()
    assert by_assignee["total_tasks"] == 0

    assert (await admin_client.delete(f"/api/admin/tasks/{task_id}")).status_code == 200
    assert (await admin_client.delete(f"/api/admin/tasks/{task_id}")).status_code == 404
    assert await tasks_collection.count_documents({}) == 0


async def test_invalid_task_id(admin_client):
    response = await admin_client.patch("/api/admin/tasks/xyz/status", json={"status": "Completed"})
    assert response.status_code == 400
