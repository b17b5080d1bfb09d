from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates

from config import TEMPLATES_DIR
from models.sessions import ConsoleSession
from routers.deps import get_api_client, require_admin
from routers.fee_collection import receipt_json
from services.api_client import TransportApiClient
from services.dues import due_filter_options, filter_due_details, outstanding_total
from services.errors import ConsoleError, ValidationError
from services.receipts import group_receipts, summarize_collection

router = APIRouter(tags=["Reports"], dependencies=[Depends(require_admin)])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def transaction_report(client: TransportApiClient, start_date: Optional[str], end_date: Optional[str]) -> dict:
    """Transactions between two dates, grouped by slip, with the cash/online split."""
    if not start_date or not end_date:
        raise ValidationError("Please select both dates")
    if start_date > end_date:
        raise ValidationError("Start date must be before end date")

    batch = client.filter_transactions_by_date(start_date, end_date)
    students = client.list_students()
    summary = summarize_collection(batch.transactions, batch.total_collection)
    return {
        "startDate": start_date,
        "endDate": end_date,
        "receipts": [receipt_json(r, students) for r in group_receipts(batch.transactions)],
        "totalCollection": summary["total"],
        "cashCollection": summary["cash"],
        "onlineCollection": summary["online"],
    }


def fee_due_report(client: TransportApiClient, class_name: Optional[str] = None, route: Optional[str] = None,
                   vehicle: Optional[str] = None, slab: Optional[str] = None,
                   admission_no: Optional[str] = None) -> dict:
    rows = client.get_all_fee_due_details()
    filtered = filter_due_details(rows, class_name, route, vehicle, slab, admission_no)
    return {
        "options": due_filter_options(rows),
        "rows": filtered,
        "totalOutstanding": outstanding_total(filtered),
    }


# ==========================
# 1. TRANSACTION REPORT
# ==========================
@router.get("/reports/transactions")
def transaction_report_page(
    request: Request,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    session: ConsoleSession = Depends(require_admin),
    client: TransportApiClient = Depends(get_api_client),
):
    report, error = None, None
    # First visit shows an empty form
    if start_date or end_date:
        try:
            report = transaction_report(client, start_date, end_date)
        except ConsoleError as e:
            error = e.message

    return templates.TemplateResponse(request, "transaction_report.html", {
        "session": session,
        "start_date": start_date or "",
        "end_date": end_date or "",
        "report": report,
        "error": error,
    })


@router.get("/api/v1/reports/transactions")
def transaction_report_api(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    client: TransportApiClient = Depends(get_api_client),
):
    return transaction_report(client, start_date, end_date)


# ==========================
# 2. FEE DUE REPORT
# ==========================
@router.get("/reports/fee-dues")
def fee_due_report_page(
    request: Request,
    class_name: Optional[str] = None,
    route: Optional[str] = None,
    vehicle: Optional[str] = None,
    slab: Optional[str] = None,
    admission_no: Optional[str] = None,
    session: ConsoleSession = Depends(require_admin),
    client: TransportApiClient = Depends(get_api_client),
):
    filters = {
        "class_name": class_name or "",
        "route": route or "",
        "vehicle": vehicle or "",
        "slab": slab or "",
        "admission_no": admission_no or "",
    }
    report, error = None, None
    try:
        report = fee_due_report(client, class_name, route, vehicle, slab, admission_no)
    except ConsoleError as e:
        error = e.message

    return templates.TemplateResponse(request, "fee_dues.html", {
        "session": session,
        "filters": filters,
        "report": report,
        "error": error,
    })


@router.get("/api/v1/reports/fee-dues")
def fee_due_report_api(
    class_name: Optional[str] = None,
    route: Optional[str] = None,
    vehicle: Optional[str] = None,
    slab: Optional[str] = None,
    admission_no: Optional[str] = None,
    client: TransportApiClient = Depends(get_api_client),
):
    return fee_due_report(client, class_name, route, vehicle, slab, admission_no)
