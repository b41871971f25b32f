from pydantic import BaseModel, Field
from datetime import datetime, timezone

UTC = timezone.utc


class Admin(BaseModel):
    name: str
    email: str
    password: str
    role: str = "admin"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
