import logging
from datetime import datetime
from pytz import UTC
from hrportal.db import system_activity_collection

logger = logging.getLogger(__name__)


async def log_admin_activity(admin_id: str = None, type: str = None, action: str = None,
                             status: str = None, target_id: str = None):
    """
    Log an admin activity.

    Args:
        admin_id (str): The admin's identifier.
        type (str): Area of the portal touched, e.g. "leave" or "payslip".
        action (str): What was done, e.g. "approved" or "released".
        status (str): Outcome of the action.
        target_id (str, optional): The record the action was applied to.
    """
    log_entry = {
        "admin_id": admin_id,
        "type": type,
        "action": action,
        "status": status,
        "target_id": target_id,
        "timestamp": datetime.now(UTC)
    }
    await system_activity_collection.insert_one(log_entry)
    logger.info("Admin %s %s %s %s (%s)", admin_id, action, type, target_id, status)
