from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from hrportal.config import settings


client = AsyncIOMotorClient(settings.MONGODB_URL)
db = client[settings.MONGODB_DB_NAME]


admins_collection = db["admins"]
employees_collection = db["employees"]
attendance_collection = db["attendance"]
leaves_collection = db["leave_requests"]
leave_ledger_collection = db["leave_ledger"]
tasks_collection = db["tasks"]
salaries_collection = db["salaries"]
payslips_collection = db["payslips"]
system_activity_collection = db["system_activity"]


async def ensure_indexes():
    """Create the indexes the portal relies on for uniqueness guarantees."""
    await admins_collection.create_index("email", unique=True)
    await employees_collection.create_index("employee_info.employee_id", unique=True)
    await employees_collection.create_index("employee_info.email", unique=True)
    await attendance_collection.create_index([("employee", ASCENDING), ("date", ASCENDING)], unique=True)
    await leaves_collection.create_index([("employee", ASCENDING), ("status", ASCENDING)])
    await leave_ledger_collection.create_index("source_key", unique=True)
    await leave_ledger_collection.create_index([("employee", ASCENDING), ("leave_type", ASCENDING)])
    await tasks_collection.create_index([("assignee_object_id", ASCENDING), ("status", ASCENDING)])
    await salaries_collection.create_index("employee", unique=True)
    await payslips_collection.create_index(
        [("employee", ASCENDING), ("year", DESCENDING), ("month", DESCENDING)], unique=True
    )
