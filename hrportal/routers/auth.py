import logging

from fastapi import APIRouter, HTTPException, Depends, Response, status

from hrportal.db import admins_collection, employees_collection
from hrportal.schemas.auth import AdminLogin, EmployeeLogin
from hrportal.utils.app_utils import (ADMIN_COOKIE, EMPLOYEE_COOKIE, create_access_token, set_auth_cookie,
                                      clear_auth_cookie, verify_password, get_current_admin,
                                      get_current_employee, serialize_objectid)

logger = logging.getLogger(__name__)

admin_router = APIRouter()
employee_router = APIRouter()


@admin_router.post("/login", status_code=status.HTTP_200_OK)
async def admin_login(credentials: AdminLogin, response: Response):
    """
    Log an admin in and set the admin session cookie.

    Args:
        credentials (AdminLogin): email and password.
        response (Response): used to attach the HTTP-only cookie.
    Returns:
        dict: A success message and the admin's public details.
    Raises:
        HTTPException: 401 if the email is unknown or the password does not match.
    """
    admin = await admins_collection.find_one({"email": credentials.email.lower()})
    if not admin or not verify_password(credentials.password, admin.get("password")):
        logger.info("Failed admin login for %s", credentials.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token({"sub": str(admin["_id"]), "user_type": "admin"})
    set_auth_cookie(response, ADMIN_COOKIE, token)

    return {
        "message": "Login successful",
        "admin": {"_id": str(admin["_id"]), "name": admin.get("name"), "email": admin.get("email")},
    }


@admin_router.post("/logout")
async def admin_logout(response: Response):
    clear_auth_cookie(response, ADMIN_COOKIE)
    return {"message": "Logged out successfully"}


@admin_router.get("/profile")
async def admin_profile(admin: dict = Depends(get_current_admin)):
    return serialize_objectid(admin)


@employee_router.post("/login", status_code=status.HTTP_200_OK)
async def employee_login(credentials: EmployeeLogin, response: Response):
    """
    Log an employee in with their employee ID and set the employee session cookie.

    Args:
        credentials (EmployeeLogin): employee_id and password.
        response (Response): used to attach the HTTP-only cookie.
    Returns:
        dict: A success message and the employee's public details.
    Raises:
        HTTPException:
            - 401: If the employee ID is unknown or the password does not match
            - 403: If the account has been deactivated
    """
    employee = await employees_collection.find_one({"employee_info.employee_id": credentials.employee_id})
    employee_info = (employee or {}).get("employee_info") or {}
    if not employee or not verify_password(credentials.password, employee_info.get("password")):
        logger.info("Failed employee login for %s", credentials.employee_id)
        raise HTTPException(status_code=401, detail="Invalid employee ID or password")

    if not employee.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account is inactive. Please contact HR.")

    token = create_access_token({"sub": str(employee["_id"]), "user_type": "employee"})
    set_auth_cookie(response, EMPLOYEE_COOKIE, token)

    return {
        "message": "Login successful",
        "employee": {
            "_id": str(employee["_id"]),
            "name": employee_info.get("name"),
            "email": employee_info.get("email"),
            "employee_id": employee_info.get("employee_id"),
            "profile_picture": employee_info.get("profile_picture"),
        },
    }


@employee_router.post("/logout")
async def employee_logout(response: Response):
    clear_auth_cookie(response, EMPLOYEE_COOKIE)
    return {"message": "Logged out successfully"}


@employee_router.get("/profile")
async def employee_profile(employee: dict = Depends(get_current_employee)):
    """Return the logged-in employee's full record, without the password hash."""
    return serialize_objectid(employee)
