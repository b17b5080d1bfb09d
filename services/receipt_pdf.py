from datetime import datetime
from io import BytesIO
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from schemas.fees import OrgProfile
from services.errors import ReceiptError
from services.receipts import Receipt, find_student, receipt_for_slip


def _text(value) -> str:
    if value is None or value == "":
        return "-"
    return escape(str(value))


def _money(value) -> str:
    return f"{(value or 0):,.2f}"


def format_date(value: Optional[str]) -> str:
    """ISO timestamp from the service -> dd/mm/yyyy; unparseable values pass through."""
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d/%m/%Y")
    except ValueError:
        return value


def _student_address(student: dict) -> str:
    parts = [student.get("addressLine"), student.get("cityOrVillage")]
    return ", ".join(p for p in parts if p)


def render_receipt_pdf(receipt: Receipt, org: Optional[OrgProfile], student: Optional[dict]) -> bytes:
    """Build the printable transport fee receipt for one slip and return the PDF bytes."""
    org = org or OrgProfile()
    student = student or {}

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=30,
        leftMargin=30,
        topMargin=30,
        bottomMargin=30,
        title=f"Receipt {receipt.slip_id}",
    )

    styles = getSampleStyleSheet()
    heading_style = ParagraphStyle(
        'ReceiptHeading',
        parent=styles['Heading1'],
        fontSize=18,
        alignment=TA_CENTER,
        spaceAfter=14,
    )
    normal = styles['Normal']

    elements = []
    elements.append(Paragraph(f"{_text(org.name or 'School Name')} - Transport Fee Receipt", heading_style))

    def info_table(rows):
        table = Table(
            [[Paragraph(f"<b>{label}</b>", normal), Paragraph(_text(value), normal)] for label, value in rows],
            colWidths=[1.9 * inch, 5.1 * inch],
        )
        table.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
        ]))
        return table

    # Letterhead
    elements.append(info_table([
        ("Address:", org.address),
        ("Phone:", org.contact),
        ("Email:", org.email),
        ("Website:", org.website),
    ]))
    elements.append(Spacer(1, 0.15 * inch))

    # Receipt info
    elements.append(info_table([
        ("Receipt Date:", format_date(receipt.payment_date)),
        ("Receipt ID:", receipt.slip_id),
    ]))
    elements.append(Spacer(1, 0.15 * inch))

    # Student info
    klass = student.get("class")
    class_name = klass.get("name") if isinstance(klass, dict) else klass
    elements.append(info_table([
        ("Student Name:", student.get("name")),
        ("Admission No:", student.get("admissionNumber")),
        ("Class:", class_name),
        ("Address:", _student_address(student)),
    ]))
    elements.append(Spacer(1, 0.25 * inch))

    # Lines
    data = [["Slab", "Amount (INR)", "Concession (INR)", "Net Paid (INR)", "Mode"]]
    for t in receipt.transactions:
        data.append([
            t.slab or "-",
            _money(t.amount),
            _money(t.concession),
            _money(t.amount - (t.concession or 0)),
            t.mode or "-",
        ])

    table = Table(data, colWidths=[1.4 * inch] * 5)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#F2F2F2')),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('LINEBELOW', (0, 0), (-1, -1), 0.5, colors.HexColor('#CCCCCC')),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 0.3 * inch))

    # Summary
    summary = Table([
        ["Total Paid (INR):", _money(receipt.total_amount)],
        ["Total Concession (INR):", _money(receipt.total_concession)],
        ["Net Balance (INR):", _money(receipt.net_paid)],
    ], colWidths=[3.5 * inch, 3.5 * inch])
    summary.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('LINEABOVE', (0, 0), (-1, 0), 1, colors.HexColor('#999999')),
    ]))
    elements.append(summary)

    # Footer
    elements.append(Spacer(1, 0.6 * inch))
    footer_style = ParagraphStyle('ReceiptFooter', parent=normal, alignment=TA_CENTER)
    elements.append(Paragraph("___________________________", footer_style))
    elements.append(Paragraph("Authorized Signature", footer_style))

    doc.build(elements)
    pdf = buffer.getvalue()
    buffer.close()
    return pdf


def build_slip_receipt(client, slip_id: str, students: Optional[list] = None):
    """
    Fetch everything a printed receipt needs and render it.
    Returns ``(receipt, pdf_bytes)``.
    """
    org = client.get_org_profile()
    receipt = receipt_for_slip(client.get_transactions_by_slip(slip_id), slip_id)

    # Some endpoints embed the student in each transaction
    student = receipt.student
    if student is None:
        if students is None:
            students = client.list_students()
        student = find_student(students, receipt.student_id)
    if student is None:
        raise ReceiptError("Student info not found")

    return receipt, render_receipt_pdf(receipt, org, student)
