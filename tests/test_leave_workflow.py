import asyncio

import pytest
from bson import ObjectId

from hrportal.db import employees_collection, leaves_collection, leave_ledger_collection
from hrportal.routers import leave_management
from hrportal.utils.leave_utils import (debit_leave_balance, get_ledger_balances, record_ledger_entry,
                                        set_leave_balances)


async def _apply(employee_client, **overrides):
    body = {
        "leave_type": "earned",
        "from_date": "2025-03-10",
        "to_date": "2025-03-12",
        "from_session": "Session 1",
        "to_session": "Session 2",
        "reason": "Family function",
    }
    body.update(overrides)
    return await employee_client.post("/api/employee/leave/apply", json=body)


async def _decide(admin_client, request_id, status, remarks=None):
    return await admin_client.put(f"/api/admin/leave/requests/{request_id}",
                                  json={"status": status, "admin_remarks": remarks})


async def _cached_balances(employee_id):
    employee = await employees_collection.find_one({"_id": employee_id})
    return employee["leave_balances"]


async def test_apply_stores_pending_request_with_computed_days(employee_client, employee):
    response = await _apply(employee_client, from_session="Session 2")
    assert response.status_code == 201
    request = response.json()["request"]
    assert request["status"] == "Pending"
    assert request["number_of_days"] == 2.5

    # nothing is deducted until approval
    assert (await _cached_balances(employee["_id"]))["earned"] == 10


async def test_apply_with_end_before_start_is_rejected(employee_client):
    response = await _apply(employee_client, from_date="2025-03-12", to_date="2025-03-10")
    assert response.status_code == 400
    assert response.json()["detail"] == "To date cannot be earlier than from date."


async def test_apply_beyond_balance_is_rejected(employee_client):
    response = await _apply(employee_client, leave_type="casual", to_date="2025-03-20")
    assert response.status_code == 400
    assert "Insufficient casual leave balance" in response.json()["detail"]


async def test_apply_with_unknown_leave_type_is_invalid(employee_client):
    response = await _apply(employee_client, leave_type="vacation")
    assert response.status_code == 422


async def test_approval_debits_balance_once_and_writes_ledger(admin_client, employee_client, employee):
    request_id = (await _apply(employee_client)).json()["request"]["_id"]

    response = await _decide(admin_client, request_id, "Approved", "Enjoy")
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "Approved"
    assert response.json()["request"]["admin_remarks"] == "Enjoy"

    balances = await _cached_balances(employee["_id"])
    assert balances["earned"] == 7
    assert balances == await get_ledger_balances(employee["_id"])

    debits = await leave_ledger_collection.find({"entry_type": "debit"}).to_list(length=None)
    assert len(debits) == 1
    assert debits[0]["amount"] == -3
    assert debits[0]["source_key"] == f"leave:{request_id}"


async def test_second_action_on_same_request_fails(admin_client, employee_client, employee):
    request_id = (await _apply(employee_client)).json()["request"]["_id"]
    assert (await _decide(admin_client, request_id, "Approved")).status_code == 200

    again = await _decide(admin_client, request_id, "Approved")
    assert again.status_code == 400
    assert again.json()["detail"] == "Request already approved."

    flip = await _decide(admin_client, request_id, "Rejected")
    assert flip.status_code == 400

    assert (await _cached_balances(employee["_id"]))["earned"] == 7
    assert await leave_ledger_collection.count_documents({"entry_type": "debit"}) == 1


async def test_rejection_leaves_balance_unchanged(admin_client, employee_client, employee):
    request_id = (await _apply(employee_client)).json()["request"]["_id"]

    response = await _decide(admin_client, request_id, "Rejected", "Busy quarter")
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "Rejected"

    assert (await _cached_balances(employee["_id"]))["earned"] == 10
    assert await leave_ledger_collection.count_documents({"entry_type": "debit"}) == 0


async def test_approval_with_insufficient_balance_is_refused(admin_client, employee_client, employee):
    request_id = (await _apply(employee_client)).json()["request"]["_id"]
    # balance drops after the request was filed
    await admin_client.put(f"/api/admin/leave/balances/{employee['_id']}", json={"earned": 1})

    response = await _decide(admin_client, request_id, "Approved")
    assert response.status_code == 400
    assert "Insufficient earned leave balance" in response.json()["detail"]

    leave = await leaves_collection.find_one({})
    assert leave["status"] == "Pending"
    assert (await _cached_balances(employee["_id"]))["earned"] == 1


async def test_invalid_decision_status_is_rejected(admin_client, employee_client):
    request_id = (await _apply(employee_client)).json()["request"]["_id"]
    response = await _decide(admin_client, request_id, "Pending")
    assert response.status_code == 422


@pytest.mark.parametrize("request_id, status_code", [("not-an-id", 400), ("64b7f0c2a1b2c3d4e5f60718", 404)])
async def test_decision_on_bad_or_missing_request(admin_client, request_id, status_code):
    response = await _decide(admin_client, request_id, "Approved")
    assert response.status_code == status_code


async def test_pending_list_and_employee_history(admin_client, employee_client):
    first = (await _apply(employee_client)).json()["request"]["_id"]
    await _apply(employee_client, from_date="2025-04-01", to_date="2025-04-01")
    await _decide(admin_client, first, "Rejected")

    pending = (await admin_client.get("/api/admin/leave/pending")).json()
    assert len(pending) == 1
    assert pending[0]["employee"]["employee_id"] == "EMP001"

    mine = (await employee_client.get("/api/employee/leave/requests", params={"status": "Pending"})).json()
    assert mine["total_requests"] == 1
    history = (await employee_client.get("/api/employee/leave/requests", params={"status": "History"})).json()
    assert history["total_requests"] == 1
    assert history["requests"][0]["status"] == "Rejected"
    everything = (await employee_client.get("/api/employee/leave/requests")).json()
    assert everything["total_requests"] == 2
    assert everything["total_pages"] == 1


async def test_admin_balance_adjustment_goes_through_ledger(admin_client, employee_client, employee):
    response = await admin_client.put(f"/api/admin/leave/balances/{employee['_id']}",
                                      json={"earned": 12.5, "sick": 2})
    assert response.status_code == 200
    assert response.json()["employee"]["leave_balances"] == {"earned": 12.5, "sick": 2.0, "casual": 3.0}

    ledger = (await admin_client.get(f"/api/admin/leave/ledger/{employee['_id']}")).json()
    assert ledger["ledger_balances"] == ledger["cached_balances"]
    reasons = sorted(entry["reason"] for entry in ledger["entries"])
    assert reasons == ["adjustment", "adjustment", "opening", "opening", "opening"]

    balance = (await employee_client.get("/api/employee/leave/balance")).json()
    assert balance == {"earned": 12.5, "sick": 2.0, "casual": 3.0}


async def test_balance_adjustment_rejects_negative_and_empty(admin_client, employee):
    url = f"/api/admin/leave/balances/{employee['_id']}"
    assert (await admin_client.put(url, json={"earned": -1})).status_code == 422
    assert (await admin_client.put(url, json={})).status_code == 400


async def test_all_balances_lists_active_employees(admin_client, employee, make_employee):
    await make_employee("EMP002", name="Bala Iyer")
    await make_employee("EMP003", name="Chitra Das", is_active=False)

    response = await admin_client.get("/api/admin/leave/balances")
    names = [row["employee_info"]["name"] for row in response.json()]
    assert names == ["Asha Rao", "Bala Iyer"]


async def test_adjustment_during_approval_keeps_cache_in_step_with_ledger(employee):
    employee_id = employee["_id"]
    # an approval has debited the cache but not yet written its ledger entry
    assert await debit_leave_balance(employee_id, "earned", 2)

    balances = await set_leave_balances(employee_id, {"earned": 10}, ObjectId(), adjustment_id="adj-1")
    assert balances["earned"] == 10

    await record_ledger_entry(employee_id, "earned", -2, "leave_approval", source_key="leave:in-flight")

    assert await _cached_balances(employee_id) == await get_ledger_balances(employee_id)
    assert (await _cached_balances(employee_id))["earned"] == 10


async def test_losing_the_status_claim_restores_the_debit(admin_client, employee_client, employee, monkeypatch):
    request_id = (await _apply(employee_client)).json()["request"]["_id"]

    async def debit_then_lose_race(employee_id, leave_type, days):
        debited = await debit_leave_balance(employee_id, leave_type, days)
        # another admin rejects the request before this approval claims it
        await leaves_collection.update_one({"_id": ObjectId(request_id)}, {"$set": {"status": "Rejected"}})
        return debited

    monkeypatch.setattr(leave_management, "debit_leave_balance", debit_then_lose_race)

    response = await _decide(admin_client, request_id, "Approved")
    assert response.status_code == 400
    assert response.json()["detail"] == "Request has already been actioned."

    assert (await _cached_balances(employee["_id"]))["earned"] == 10
    assert await leave_ledger_collection.count_documents({"entry_type": "debit"}) == 0
    assert (await leaves_collection.find_one({"_id": ObjectId(request_id)}))["status"] == "Rejected"


async def test_competing_approvals_cannot_overdraw(admin_client, employee_client, employee):
    # casual balance is 3, each request takes 2 days
    first = (await _apply(employee_client, leave_type="casual", to_date="2025-03-11")).json()["request"]
    second = (await _apply(employee_client, leave_type="casual", from_date="2025-04-01",
                           to_date="2025-04-02")).json()["request"]
    assert first["number_of_days"] == second["number_of_days"] == 2

    responses = await asyncio.gather(
        _decide(admin_client, first["_id"], "Approved"),
        _decide(admin_client, second["_id"], "Approved"),
    )
    assert sorted(r.status_code for r in responses) == [200, 400]

    balances = await _cached_balances(employee["_id"])
    assert balances["casual"] == 1
    assert balances == await get_ledger_balances(employee["_id"])
    assert await leave_ledger_collection.count_documents({"entry_type": "debit"}) == 1
    assert await leaves_collection.count_documents({"status": "Pending"}) == 1
