import logging
from contextlib import asynccontextmanager

import uvicorn

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from hrportal.config import settings
from hrportal.db import ensure_indexes
from hrportal.exceptions import LeaveCalculationError
from hrportal.routers import (auth, employee_management, attendance, attendance_management, leave,
                              leave_management, tasks, task_management, salary_management,
                              payslip_management, payslips)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

PROD_MODE = settings.PRODUCTION_MODE


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_indexes()
    logger.info("%s started, indexes ensured on %s", settings.PROJECT_TITLE, settings.MONGODB_DB_NAME)
    yield


app = FastAPI(title=settings.PROJECT_TITLE, lifespan=lifespan)

# Admin
app.include_router(auth.admin_router, prefix="/api/admin", tags=["admin_auth"])
app.include_router(employee_management.router, prefix="/api/admin/employees", tags=["employee_management"])
app.include_router(attendance_management.router, prefix="/api/admin/attendance", tags=["attendance_management"])
app.include_router(leave_management.router, prefix="/api/admin/leave", tags=["leave_management"])
app.include_router(task_management.router, prefix="/api/admin/tasks", tags=["task_management"])
app.include_router(salary_management.router, prefix="/api/admin/salaries", tags=["salary_management"])
app.include_router(payslip_management.router, prefix="/api/admin/payslips", tags=["payslip_management"])

# Employee
app.include_router(auth.employee_router, prefix="/api/employee", tags=["employee_auth"])
app.include_router(attendance.router, prefix="/api/employee/attendance", tags=["attendance"])
app.include_router(leave.router, prefix="/api/employee/leave", tags=["leave"])
app.include_router(tasks.router, prefix="/api/employee/tasks", tags=["tasks"])
app.include_router(payslips.router, prefix="/api/employee/payslips", tags=["payslips"])

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LeaveCalculationError)
async def leave_calculation_exception_handler(request: Request, exc: LeaveCalculationError):
    logger.info("Rejected leave dates: %s", exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/")
def index():
    return {"message": "HR Portal API is running..."}


if __name__ == "__main__":
    if PROD_MODE:
        uvicorn.run("hrportal.main:app", host="0.0.0.0", port=5000, reload=False)
    else:
        uvicorn.run("hrportal.main:app", host="0.0.0.0", port=5000, reload=True)
