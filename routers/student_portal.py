"""
Student portal: a student's own dues and receipts.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from fastapi.templating import Jinja2Templates

from config import TEMPLATES_DIR
from models.sessions import ConsoleSession
from routers.deps import get_student_api_client, require_student
from routers.fee_collection import slab_json
from services.api_client import TransportApiClient
from services.errors import ConsoleError, ReceiptError
from services.receipt_pdf import build_slip_receipt

router = APIRouter(tags=["Student Portal"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def student_overview(session: ConsoleSession, client: TransportApiClient) -> dict:
    dues = client.get_fee_due_details(session.user_id)
    slabs = [slab_json(s) for s in dues.slabs]
    return {
        "student": session.info or {},
        "slabs": slabs,
        "totalDue": sum(s["finalPayable"] for s in slabs if s["status"] == "Due"),
    }


@router.get("/student/dashboard")
def student_dashboard(
    request: Request,
    session: ConsoleSession = Depends(require_student),
    client: TransportApiClient = Depends(get_student_api_client),
):
    overview, org, errors = None, None, []
    try:
        org = client.get_org_profile()
    except ConsoleError as e:
        errors.append(e.message)
    try:
        overview = student_overview(session, client)
    except ConsoleError as e:
        errors.append(e.message)

    return templates.TemplateResponse(request, "student_dashboard.html", {
        "session": session,
        "org": org,
        "overview": overview,
        "errors": errors,
    })


@router.get("/api/v1/student/dues")
def student_dues(
    session: ConsoleSession = Depends(require_student),
    client: TransportApiClient = Depends(get_student_api_client),
):
    return student_overview(session, client)


@router.get("/student/receipt/{slip_id}.pdf")
def student_receipt(
    slip_id: str,
    session: ConsoleSession = Depends(require_student),
    client: TransportApiClient = Depends(get_student_api_client),
):
    receipt, pdf = build_slip_receipt(client, slip_id, students=[session.info or {}])
    # Another student's slip looks the same as a missing one
    if not session.user_id or receipt.student_id != session.user_id:
        raise ReceiptError("No transactions found for this Slip ID")

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="receipt-{receipt.slip_id}.pdf"'},
    )
