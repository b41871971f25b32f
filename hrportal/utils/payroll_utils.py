import calendar
import logging
import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from num2words import num2words
from pytz import timezone as pytz_timezone

from hrportal.config import settings
from hrportal.models.payslips import Deductions, Earnings, EmployeeSnapshot, SnapshotBankDetails

logger = logging.getLogger(__name__)

BASIC_RATE = Decimal("0.40")
HRA_RATE = Decimal("0.40")
MEDICAL_ALLOWANCE = Decimal("1250.00")
CENT = Decimal("0.01")
MAX_AMOUNT = 1_000_000_000


def _round(value: Decimal) -> Decimal:
    # ROUND_HALF_UP on Decimal rounds halves away from zero
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_payslip_details(monthly_salary: float, professional_tax: float) -> Dict:
    """
    Split a gross monthly salary into earnings, deductions and net pay.

    Every figure is rounded to paise as soon as it is computed, and the total
    is summed from the rounded parts rather than copied from the input.
    """
    for amount in (monthly_salary, professional_tax):
        if not math.isfinite(amount) or amount > MAX_AMOUNT:
            raise ValueError(f"Salary amounts must be finite and at most {MAX_AMOUNT}.")
    if monthly_salary < 0 or professional_tax < 0:
        raise ValueError("Salary and professional tax cannot be negative.")

    salary = Decimal(str(monthly_salary))
    tax = Decimal(str(professional_tax))

    basic = _round(salary * BASIC_RATE)
    hra = _round(basic * HRA_RATE)
    medical_allowance = MEDICAL_ALLOWANCE
    special_allowance = _round(salary - (basic + hra + medical_allowance))

    total_earnings = _round(basic + hra + medical_allowance + special_allowance)
    total_deductions = _round(tax)
    net_pay = _round(total_earnings - total_deductions)

    if special_allowance < 0:
        logger.warning(
            "Special allowance calculated as negative (%s) for monthly salary %s, leaving it unclamped",
            special_allowance, monthly_salary,
        )

    return {
        "earnings": Earnings(
            basic=float(basic),
            hra=float(hra),
            medical_allowance=float(medical_allowance),
            special_allowance=float(special_allowance),
            total=float(total_earnings),
        ),
        "deductions": Deductions(professional_tax=float(total_deductions), total=float(total_deductions)),
        "net_pay": float(net_pay),
    }


def build_employee_snapshot(employee: dict, bank_details: Optional[dict]) -> EmployeeSnapshot:
    employee_info = employee.get("employee_info") or {}
    job_details = employee.get("job_details") or {}
    identification = employee.get("identification_details") or {}
    bank_details = bank_details or {}
    return EmployeeSnapshot(
        name=employee_info.get("name"),
        employee_id=employee_info.get("employee_id"),
        designation=job_details.get("current_position"),
        department=job_details.get("department"),
        pan_number=identification.get("pan_card_no"),
        bank_details=SnapshotBankDetails(
            bank_name=bank_details.get("bank_name"),
            account_number=bank_details.get("account_number"),
            ifsc_code=bank_details.get("ifsc_code"),
        ),
    )


def format_inr(amount: Optional[float]) -> str:
    """Format with two decimals and Indian digit grouping, e.g. 1,50,000.00."""
    value = _round(Decimal(str(amount or 0)))
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}.{fraction}"


def amount_in_words(amount: Optional[float]) -> str:
    words = num2words(int(amount or 0))
    words = words.replace(",", "").replace("-", " ")
    return f"{words.title()} Only"


def mask_account_number(account_number: Optional[str]) -> str:
    if not account_number:
        return "-"
    return f"****{account_number[-4:]}"


def _format_local(moment: Optional[datetime]) -> str:
    if moment is None:
        return "-"
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=pytz_timezone("UTC"))
    local = moment.astimezone(pytz_timezone(settings.BUSINESS_TIMEZONE))
    return local.strftime("%d/%m/%Y, %I:%M:%S %p")


def build_payslip_context(payslip: dict) -> Dict[str, str]:
    """Flatten a stored payslip into the strings the PDF renderer prints."""
    snapshot = payslip.get("employee_snapshot") or {}
    bank = snapshot.get("bank_details") or {}
    earnings = payslip["earnings"]
    deductions = payslip["deductions"]

    if payslip.get("is_released"):
        release_status = f"Released on: {_format_local(payslip.get('released_at'))}"
    else:
        release_status = "Not Released"

    return {
        "company_name": settings.COMPANY_NAME,
        "company_address": settings.COMPANY_ADDRESS,
        "month_year": f"{calendar.month_name[payslip['month']]} {payslip['year']}",
        "employee_name": snapshot.get("name") or "-",
        "employee_id": snapshot.get("employee_id") or "-",
        "designation": snapshot.get("designation") or "-",
        "department": snapshot.get("department") or "-",
        "pan_number": snapshot.get("pan_number") or "-",
        "bank_account_no": mask_account_number(bank.get("account_number")),
        "basic": format_inr(earnings.get("basic")),
        "hra": format_inr(earnings.get("hra")),
        "medical_allowance": format_inr(earnings.get("medical_allowance")),
        "special_allowance": format_inr(earnings.get("special_allowance")),
        "total_earnings": format_inr(earnings.get("total")),
        "professional_tax": format_inr(deductions.get("professional_tax")),
        "total_deductions": format_inr(deductions.get("total")),
        "net_pay": format_inr(payslip.get("net_pay")),
        "net_pay_in_words": amount_in_words(payslip.get("net_pay")),
        "generated_date": _format_local(payslip.get("generated_at")),
        "release_status": release_status,
    }


def payslip_filename(payslip: dict) -> str:
    snapshot = payslip.get("employee_snapshot") or {}
    return f"Payslip_{payslip['month']}_{payslip['year']}_{snapshot.get('employee_id')}.pdf"
