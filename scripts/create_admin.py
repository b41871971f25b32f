import asyncio
import logging
import sys

from pymongo.errors import DuplicateKeyError

from hrportal.config import settings
from hrportal.db import admins_collection, ensure_indexes
from hrportal.models.admins import Admin
from hrportal.utils.app_utils import hash_password

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


async def create_admin_user() -> bool:
    email = settings.FIRST_ADMIN_EMAIL.lower()
    password = settings.FIRST_ADMIN_PASSWORD
    if not password:
        logger.error("FIRST_ADMIN_PASSWORD is not set. Add it to the environment or .env and retry.")
        return False

    await ensure_indexes()

    if await admins_collection.find_one({"email": email}):
        logger.warning("Admin user '%s' already exists.", email)
        return True

    admin = Admin(name=settings.FIRST_ADMIN_NAME, email=email, password=hash_password(password))
    try:
        await admins_collection.insert_one(admin.model_dump())
    except DuplicateKeyError:
        logger.warning("Admin user '%s' already exists.", email)
        return True

    logger.info("Admin user created successfully. You can now login.")
    logger.info("Email: %s", email)
    return True


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(create_admin_user()) else 1)
