import os

import pytest
import pytest_asyncio

# Set env before importing app components
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MONGODB_DB_NAME", "hr_portal_test")

# Swap the Mongo client for the in-memory one before hrportal.db builds its client
import motor.motor_asyncio
from mongomock_motor import AsyncMongoMockClient

motor.motor_asyncio.AsyncIOMotorClient = AsyncMongoMockClient

from httpx import ASGITransport, AsyncClient

from hrportal import db as hr_db
from hrportal.main import app
from hrportal.models.admins import Admin
from hrportal.models.employees import Employee
from hrportal.utils.app_utils import ADMIN_COOKIE, EMPLOYEE_COOKIE, create_access_token, hash_password
from hrportal.utils.leave_utils import credit_opening_balances

COLLECTIONS = [
    hr_db.admins_collection,
    hr_db.employees_collection,
    hr_db.attendance_collection,
    hr_db.leaves_collection,
    hr_db.leave_ledger_collection,
    hr_db.tasks_collection,
    hr_db.salaries_collection,
    hr_db.payslips_collection,
    hr_db.system_activity_collection,
]

ADMIN_PASSWORD = "AdminPassword123!"
EMPLOYEE_PASSWORD = "EmployeePassword123!"


@pytest_asyncio.fixture(autouse=True)
async def clean_database():
    """Empty every collection and make sure the unique indexes exist."""
    for collection in COLLECTIONS:
        await collection.delete_many({})
    await hr_db.ensure_indexes()
    yield


def _client(cookies=None):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", cookies=cookies)


@pytest_asyncio.fixture
async def client():
    async with _client() as c:
        yield c


@pytest_asyncio.fixture
async def admin_user():
    admin = Admin(name="System Admin", email="admin@company.com", password=hash_password(ADMIN_PASSWORD))
    admin_dict = admin.model_dump()
    result = await hr_db.admins_collection.insert_one(admin_dict)
    admin_dict["_id"] = result.inserted_id
    return admin_dict


@pytest.fixture
def make_employee():
    """Factory inserting an employee whose cached balances match opening ledger credits."""

    async def _make_employee(employee_id="EMP001", name="Asha Rao", email=None, balances=None, is_active=True,
                             designation="Engineer", department="Engineering", pan="ABCDE1234F"):
        balances = balances if balances is not None else {"earned": 10, "sick": 5, "casual": 3}
        employee = Employee(
            employee_info={
                "name": name,
                "email": email or f"{employee_id.lower()}@company.com",
                "employee_id": employee_id,
                "password": hash_password(EMPLOYEE_PASSWORD),
            },
            job_details={"current_position": designation, "department": department},
            identification_details={"pan_card_no": pan},
            is_active=is_active,
            leave_balances={leave_type: float(balances.get(leave_type, 0)) for leave_type in ("earned", "sick", "casual")},
        )
        employee_dict = employee.model_dump()
        result = await hr_db.employees_collection.insert_one(employee_dict)
        employee_dict["_id"] = result.inserted_id
        await credit_opening_balances(result.inserted_id, employee_dict["leave_balances"])
        return employee_dict

    return _make_employee


@pytest_asyncio.fixture
async def employee(make_employee):
    return await make_employee()


def admin_token(admin):
    return create_access_token({"sub": str(admin["_id"]), "user_type": "admin"})


def employee_token(employee):
    return create_access_token({"sub": str(employee["_id"]), "user_type": "employee"})


@pytest_asyncio.fixture
async def admin_client(admin_user):
    async with _client({ADMIN_COOKIE: admin_token(admin_user)}) as c:
        yield c


@pytest_asyncio.fixture
async def employee_client(employee):
    async with _client({EMPLOYEE_COOKIE: employee_token(employee)}) as c:
        yield c


@pytest.fixture
def client_as():
    """Build a client logged in as the given employee; use it with `async with`."""

    def _client_as(employee_doc):
        return _client({EMPLOYEE_COOKIE: employee_token(employee_doc)})

    return _client_as
