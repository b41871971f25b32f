import logging
import math
from datetime import datetime, timezone, timedelta
from typing import Dict, Any, Optional

import bcrypt
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Cookie, HTTPException, Response
from jose import JWTError, jwt

from hrportal.config import settings
from hrportal.db import admins_collection, employees_collection
from hrportal.exceptions import get_user_exception

UTC = timezone.utc

logger = logging.getLogger(__name__)

secret_key = settings.SECRET_KEY
algorithm = settings.ALGORITHM

ADMIN_COOKIE = "jwt_admin"
EMPLOYEE_COOKIE = "jwt_employee"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed_password = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed_password.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    if isinstance(hashed_password, str):
        hashed_password = hashed_password.encode('utf-8')

    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password)


def create_access_token(payload: Dict[str, Any], expiry: Optional[timedelta] = None):
    if expiry is None:
        expiry = timedelta(days=settings.TOKEN_EXPIRY_DAYS)
    data_to_encode = {"data": payload}
    expiry_delta = datetime.now(UTC) + expiry
    data_to_encode.update({"exp": expiry_delta})
    encoded_data: str = jwt.encode(data_to_encode, secret_key, algorithm)

    return encoded_data


def set_auth_cookie(response: Response, cookie_name: str, token: str):
    response.set_cookie(
        key=cookie_name,
        value=token,
        httponly=True,
        secure=settings.PRODUCTION_MODE,
        samesite="strict",
        max_age=settings.TOKEN_EXPIRY_DAYS * 24 * 60 * 60,
    )


def clear_auth_cookie(response: Response, cookie_name: str):
    response.set_cookie(
        key=cookie_name,
        value="",
        httponly=True,
        expires=0,
    )


def _decode_token(token: Optional[str], expected_type: str) -> str:
    if not token:
        raise get_user_exception("Not authorized, no token")
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as e:
        logger.info("Rejected %s token: %s", expected_type, e)
        raise get_user_exception("Not authorized, token failed")

    data = payload.get("data") or {}
    pk = data.get("sub")
    if pk is None or data.get("user_type") != expected_type:
        raise get_user_exception("Not authorized, token failed")
    return pk


async def get_current_admin(jwt_admin: Optional[str] = Cookie(None)) -> dict:
    pk = _decode_token(jwt_admin, "admin")
    admin = await admins_collection.find_one({"_id": to_object_id(pk, "Admin ID", status_code=401)},
                                             projection={"password": 0})
    if not admin:
        raise get_user_exception("Not authorized, admin not found")
    return admin


async def get_current_employee(jwt_employee: Optional[str] = Cookie(None)) -> dict:
    pk = _decode_token(jwt_employee, "employee")
    employee = await employees_collection.find_one({"_id": to_object_id(pk, "Employee ID", status_code=401)},
                                                   projection={"employee_info.password": 0})
    if not employee:
        raise get_user_exception("Not authorized, employee not found")
    if not employee.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account is inactive. Please contact HR.")
    return employee


def to_object_id(value: str, label: str = "ID", status_code: int = 400) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=status_code, detail=f"Invalid {label} format.")


def serialize_objectid(data):
    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                serialize_objectid(item)
    elif isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, ObjectId):
                data[key] = str(value)
            elif isinstance(value, (dict, list)):
                serialize_objectid(value)
    return data


def clean_empty_strings(data):
    """Drop empty strings and the containers they leave empty, recursively."""
    if not isinstance(data, dict):
        return data
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = clean_empty_strings(value)
            if not value:
                continue
        elif value == "" or value is None:
            continue
        cleaned[key] = value
    return cleaned


def flatten_for_set(data: dict, prefix: str = "") -> dict:
    """Turn nested dicts into dotted paths so a $set merges instead of replacing."""
    updates = {}
    for key, value in data.items():
        path = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            updates.update(flatten_for_set(value, f"{path}."))
        else:
            updates[path] = value
    return updates


def get_page_bounds(page: int, limit: int):
    page = max(page, 1)
    limit = max(limit, 1)
    return page, limit, (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
