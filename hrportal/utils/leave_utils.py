import logging
import math
from datetime import date, datetime, timezone
from typing import Dict, Optional, Union

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from hrportal.db import employees_collection, leave_ledger_collection
from hrportal.exceptions import InvalidDate, InvalidRange, InvalidDuration
from hrportal.models.employees import LEAVE_TYPES
from hrportal.models.leaves import LeaveLedgerEntry, LedgerEntryType, Session

UTC = timezone.utc

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise InvalidDate(f"Invalid date format provided: {value!r}")


def _session_value(session) -> str:
    return session.value if isinstance(session, Session) else str(session)


def calculate_leave_days(from_date: DateLike, to_date: DateLike, from_session, to_session) -> float:
    """
    Number of leave days requested, counted in half-day sessions.

    Both dates are inclusive. Starting in the second half of the first day or
    ending in the first half of the last day each take half a day off. A
    request on a single day is half a day when both sessions are the same and
    a full day otherwise.

    Raises:
        InvalidDate: a date cannot be parsed.
        InvalidRange: to_date is before from_date.
        InvalidDuration: the result is under half a day.
    """
    start = _to_date(from_date)
    end = _to_date(to_date)

    if end < start:
        raise InvalidRange("To date cannot be earlier than from date.")

    from_session = _session_value(from_session)
    to_session = _session_value(to_session)

    if start == end:
        return 0.5 if from_session == to_session else 1.0

    days = math.ceil(abs((end - start).days)) + 1
    if from_session == Session.SECOND_HALF.value:
        days -= 0.5
    if to_session == Session.FIRST_HALF.value:
        days -= 0.5

    if days < 0.5:
        raise InvalidDuration("Leave duration cannot be less than a half day.")
    return float(days)


def to_storage_datetime(value: DateLike) -> datetime:
    """Midnight of the given calendar day as a naive datetime, the form BSON stores."""
    day = _to_date(value)
    return datetime(day.year, day.month, day.day)


async def record_ledger_entry(employee_id: ObjectId, leave_type: str, amount: float, reason: str,
                              source_key: str, leave_request: Optional[ObjectId] = None,
                              created_by: Optional[ObjectId] = None) -> bool:
    """
    Append one movement to the leave ledger.

    Returns False when an entry with the same source_key already exists, so a
    replayed approval can never debit twice.
    """
    entry = LeaveLedgerEntry(
        employee=employee_id,
        leave_type=leave_type,
        amount=amount,
        entry_type=LedgerEntryType.CREDIT if amount >= 0 else LedgerEntryType.DEBIT,
        reason=reason,
        source_key=source_key,
        leave_request=leave_request,
        created_by=created_by,
    )
    try:
        await leave_ledger_collection.insert_one(entry.model_dump())
    except DuplicateKeyError:
        logger.warning("Ledger entry %s already recorded, skipping", source_key)
        return False
    return True


async def get_ledger_balances(employee_id: ObjectId) -> Dict[str, float]:
    pipeline = [
        {"$match": {"employee": employee_id}},
        {"$group": {"_id": "$leave_type", "balance": {"$sum": "$amount"}}},
    ]
    results = await leave_ledger_collection.aggregate(pipeline).to_list(length=None)
    balances = {leave_type: 0.0 for leave_type in LEAVE_TYPES}
    for item in results:
        balances[item["_id"]] = round(float(item["balance"]), 2)
    return balances


async def credit_opening_balances(employee_id: ObjectId, balances: Dict[str, float],
                                  created_by: Optional[ObjectId] = None):
    for leave_type, amount in balances.items():
        if amount:
            await record_ledger_entry(
                employee_id, leave_type, float(amount), "opening",
                source_key=f"opening:{employee_id}:{leave_type}", created_by=created_by,
            )


async def debit_leave_balance(employee_id: ObjectId, leave_type: str, days: float) -> bool:
    """
    Take days off the cached balance only if enough remains.

    The guard and the decrement happen in one update, so two approvals racing
    for the same balance cannot both succeed.
    """
    field = f"leave_balances.{leave_type}"
    result = await employees_collection.update_one(
        {"_id": employee_id, field: {"$gte": days}},
        {"$inc": {field: -days}, "$set": {"updated_at": datetime.now(UTC)}},
    )
    return result.modified_count == 1


async def restore_leave_balance(employee_id: ObjectId, leave_type: str, days: float):
    await employees_collection.update_one(
        {"_id": employee_id},
        {"$inc": {f"leave_balances.{leave_type}": days}},
    )


async def set_leave_balances(employee_id: ObjectId, targets: Dict[str, float], admin_id: ObjectId,
                             adjustment_id: str) -> Dict[str, float]:
    """
    Move each cached balance to its target and record the difference as an adjustment.

    The cache moves by `$inc` of the delta, guarded on the value the delta was
    computed from, so a concurrent approval debit is never overwritten.
    """
    for leave_type, target in targets.items():
        field = f"leave_balances.{leave_type}"
        while True:
            employee = await employees_collection.find_one({"_id": employee_id}, projection={"leave_balances": 1})
            if not employee:
                raise ValueError(f"Employee {employee_id} not found.")
            stored = (employee.get("leave_balances") or {}).get(leave_type)
            delta = round(float(target) - float(stored or 0.0), 2)
            if not delta:
                break
            guard = {field: stored} if stored is not None else {field: {"$exists": False}}
            result = await employees_collection.update_one(
                {"_id": employee_id, **guard},
                {"$inc": {field: delta}, "$set": {"updated_at": datetime.now(UTC)}},
            )
            if result.modified_count == 1:
                await record_ledger_entry(
                    employee_id, leave_type, delta, "adjustment",
                    source_key=f"adjustment:{adjustment_id}:{leave_type}", created_by=admin_id,
                )
                break

    employee = await employees_collection.find_one({"_id": employee_id}, projection={"leave_balances": 1})
    return employee["leave_balances"]
