import io
from datetime import datetime, timezone, date

from openpyxl import load_workbook

from hrportal.utils.attendance_utils import build_attendance_grid, start_of_day
from hrportal.utils.export_utils import (render_payslip_pdf, render_payslip_register_xlsx,
                                         render_attendance_history_xlsx)
from hrportal.utils.payroll_utils import (format_inr, amount_in_words, mask_account_number,
                                          build_payslip_context, payslip_filename)


def _payslip(**overrides):
    payslip = {
        "month": 3,
        "year": 2025,
        "earnings": {"basic": 20000.0, "hra": 8000.0, "medical_allowance": 1250.0,
                     "special_allowance": 20750.0, "total": 50000.0},
        "deductions": {"professional_tax": 200.0, "total": 200.0},
        "net_pay": 49800.0,
        "employee_snapshot": {
            "name": "Asha Rao",
            "employee_id": "EMP001",
            "designation": "Engineer",
            "department": "Engineering",
            "pan_number": "ABCDE1234F",
            "bank_details": {"bank_name": "SBI", "account_number": "001234567890", "ifsc_code": "SBIN0000001"},
        },
        "is_released": False,
        "released_at": None,
        "generated_at": datetime(2025, 3, 31, 6, 0, tzinfo=timezone.utc),
    }
    payslip.update(overrides)
    return payslip


def test_format_inr_uses_indian_grouping():
    assert format_inr(150000) == "1,50,000.00"
    assert format_inr(1234567.891) == "12,34,567.89"
    assert format_inr(999) == "999.00"
    assert format_inr(-1500) == "-1,500.00"
    assert format_inr(None) == "0.00"


def test_amount_in_words():
    assert amount_in_words(49800) == "Forty Nine Thousand Eight Hundred Only"
    assert amount_in_words(0) == "Zero Only"


def test_mask_account_number():
    assert mask_account_number("001234567890") == "****7890"
    assert mask_account_number(None) == "-"


def test_payslip_context_formats_amounts_and_masks_account():
    context = build_payslip_context(_payslip())

    assert context["month_year"] == "March 2025"
    assert context["net_pay"] == "49,800.00"
    assert context["net_pay_in_words"] == "Forty Nine Thousand Eight Hundred Only"
    assert context["bank_account_no"] == "****7890"
    assert context["release_status"] == "Not Released"
    # 06:00 UTC is 11:30 in Asia/Kolkata
    assert context["generated_date"] == "31/03/2025, 11:30:00 AM"


def test_payslip_context_shows_release_time():
    released = _payslip(is_released=True, released_at=datetime(2025, 4, 1, 4, 30, tzinfo=timezone.utc))
    assert build_payslip_context(released)["release_status"] == "Released on: 01/04/2025, 10:00:00 AM"


def test_payslip_filename():
    assert payslip_filename(_payslip()) == "Payslip_3_2025_EMP001.pdf"


def test_render_payslip_pdf():
    content = render_payslip_pdf(build_payslip_context(_payslip()))
    assert content.startswith(b"%PDF")
    assert len(content) > 1000


def test_render_payslip_register_xlsx():
    content = render_payslip_register_xlsx([_payslip(), _payslip(is_released=True)])
    sheet = load_workbook(io.BytesIO(content))["Payslips"]
    rows = list(sheet.iter_rows(values_only=True))

    assert rows[0][0] == "Employee ID"
    assert rows[0][-1] == "Released"
    assert rows[1][0] == "EMP001"
    assert rows[1][13] == 49800.0
    assert [row[-1] for row in rows[1:]] == ["No", "Yes"]


def test_render_attendance_history_xlsx():
    days = [date(2025, 3, 11), date(2025, 3, 10)]
    employees = [{"_id": "a1", "employee_info": {"name": "Asha Rao", "employee_id": "EMP001"}}]
    records = [{"employee": "a1", "date": start_of_day(days[1]), "status": "Present"}]
    grid = build_attendance_grid(employees, records, days)

    content = render_attendance_history_xlsx(grid, [day.isoformat() for day in days])
    rows = list(load_workbook(io.BytesIO(content))["Attendance"].iter_rows(values_only=True))

    assert rows[0] == ("Employee ID", "Name", "2025-03-11", "2025-03-10")
    assert rows[1] == ("EMP001", "Asha Rao", "A", "P")
