from pydantic import BaseModel, EmailStr


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class EmployeeLogin(BaseModel):
    employee_id: str
    password: str
