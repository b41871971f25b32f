from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_TITLE: str = "HR Portal"
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "hr_portal"
    PRODUCTION_MODE: bool = False
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    TOKEN_EXPIRY_DAYS: int = 30
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    BUSINESS_TIMEZONE: str = "Asia/Kolkata"
    LATE_CHECKIN_HOUR: int = 10
    LATE_CHECKIN_MINUTE: int = 30
    ATTENDANCE_HISTORY_DAYS: int = 15

    COMPANY_NAME: str = "Your Company Name"
    COMPANY_ADDRESS: str = "Your Company Address"

    FIRST_ADMIN_NAME: str = "Main Admin"
    FIRST_ADMIN_EMAIL: str = "admin@company.com"
    FIRST_ADMIN_PASSWORD: str = ""

    class Config:
        env_file = ".env"

settings = Settings()
