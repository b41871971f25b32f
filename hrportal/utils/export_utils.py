import io
from typing import Dict, List

import pandas as pd
from fastapi import Response
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


MARGIN_X = 40
LINE = 16


def render_payslip_pdf(context: Dict[str, str]) -> bytes:
    """Draw a one page A4 payslip from the strings in build_payslip_context."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    right = width - MARGIN_X
    y = height - 50

    pdf.setTitle(f"Payslip {context['month_year']} {context['employee_id']}")
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(MARGIN_X, y, context["company_name"])
    y -= LINE
    pdf.setFont("Helvetica", 10)
    pdf.drawString(MARGIN_X, y, context["company_address"])
    y -= LINE * 2

    pdf.setFont("Helvetica-Bold", 13)
    pdf.drawCentredString(width / 2, y, f"Payslip for the month of {context['month_year']}")
    y -= LINE * 2

    pdf.setFont("Helvetica", 10)
    details = [
        ("Employee Name", context["employee_name"], "Employee ID", context["employee_id"]),
        ("Designation", context["designation"], "Department", context["department"]),
        ("PAN", context["pan_number"], "Bank A/C No.", context["bank_account_no"]),
    ]
    for left_label, left_value, right_label, right_value in details:
        pdf.drawString(MARGIN_X, y, f"{left_label}: {left_value}")
        pdf.drawString(width / 2, y, f"{right_label}: {right_value}")
        y -= LINE
    y -= LINE

    pdf.line(MARGIN_X, y + 10, right, y + 10)
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(MARGIN_X, y, "Earnings")
    pdf.drawRightString(width / 2 - 10, y, "Amount")
    pdf.drawString(width / 2, y, "Deductions")
    pdf.drawRightString(right, y, "Amount")
    y -= LINE
    pdf.line(MARGIN_X, y + 10, right, y + 10)

    pdf.setFont("Helvetica", 10)
    earnings = [
        ("Basic", context["basic"]),
        ("House Rent Allowance", context["hra"]),
        ("Medical Allowance", context["medical_allowance"]),
        ("Special Allowance", context["special_allowance"]),
    ]
    deductions = [("Professional Tax", context["professional_tax"])]
    for index, (label, amount) in enumerate(earnings):
        pdf.drawString(MARGIN_X, y, label)
        pdf.drawRightString(width / 2 - 10, y, amount)
        if index < len(deductions):
            pdf.drawString(width / 2, y, deductions[index][0])
            pdf.drawRightString(right, y, deductions[index][1])
        y -= LINE

    pdf.line(MARGIN_X, y + 10, right, y + 10)
    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(MARGIN_X, y, "Total Earnings")
    pdf.drawRightString(width / 2 - 10, y, context["total_earnings"])
    pdf.drawString(width / 2, y, "Total Deductions")
    pdf.drawRightString(right, y, context["total_deductions"])
    y -= LINE * 2

    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(MARGIN_X, y, f"Net Pay: {context['net_pay']}")
    y -= LINE
    pdf.setFont("Helvetica-Oblique", 10)
    pdf.drawString(MARGIN_X, y, context["net_pay_in_words"])
    y -= LINE * 3

    pdf.setFont("Helvetica", 8)
    pdf.drawString(MARGIN_X, y, f"Generated on: {context['generated_date']}")
    pdf.drawRightString(right, y, context["release_status"])
    y -= LINE
    pdf.drawString(MARGIN_X, y, "This is a computer generated payslip and does not require a signature.")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def _to_xlsx(df: pd.DataFrame, sheet_name: str) -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()


def render_payslip_register_xlsx(payslips: List[dict]) -> bytes:
    rows = []
    for payslip in payslips:
        snapshot = payslip.get("employee_snapshot") or {}
        earnings = payslip.get("earnings") or {}
        deductions = payslip.get("deductions") or {}
        rows.append({
            "Employee ID": snapshot.get("employee_id"),
            "Name": snapshot.get("name"),
            "Designation": snapshot.get("designation"),
            "Department": snapshot.get("department"),
            "Month": payslip.get("month"),
            "Year": payslip.get("year"),
            "Basic": earnings.get("basic"),
            "HRA": earnings.get("hra"),
            "Medical Allowance": earnings.get("medical_allowance"),
            "Special Allowance": earnings.get("special_allowance"),
            "Total Earnings": earnings.get("total"),
            "Professional Tax": deductions.get("professional_tax"),
            "Total Deductions": deductions.get("total"),
            "Net Pay": payslip.get("net_pay"),
            "Released": "Yes" if payslip.get("is_released") else "No",
        })
    columns = [
        "Employee ID", "Name", "Designation", "Department", "Month", "Year",
        "Basic", "HRA", "Medical Allowance", "Special Allowance", "Total Earnings",
        "Professional Tax", "Total Deductions", "Net Pay", "Released",
    ]
    return _to_xlsx(pd.DataFrame(rows, columns=columns), "Payslips")


def render_attendance_history_xlsx(employees_attendance: List[dict], dates: List[str]) -> bytes:
    rows = []
    for employee in employees_attendance:
        row = {"Employee ID": employee["employee_id"], "Name": employee["name"]}
        for day in dates:
            row[day] = employee["attendance"].get(day, "A")
        rows.append(row)
    return _to_xlsx(pd.DataFrame(rows, columns=["Employee ID", "Name", *dates]), "Attendance")
