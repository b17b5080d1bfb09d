from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates

from config import TEMPLATES_DIR
from models.sessions import ConsoleSession
from routers.deps import get_api_client, require_admin
from services.api_client import TransportApiClient
from services.errors import ConsoleError
from services.receipts import group_receipts, summarize_collection

router = APIRouter(tags=["Dashboard"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


@router.get("/")
def dashboard_view(
    request: Request,
    session: ConsoleSession = Depends(require_admin),
    client: TransportApiClient = Depends(get_api_client),
):
    # 1. Today's collection
    summary, receipt_count, error = summarize_collection([]), 0, None
    try:
        batch = client.get_today_transactions()
        summary = summarize_collection(batch.transactions, batch.total_collection)
        receipt_count = len(group_receipts(batch.transactions))
    except ConsoleError as e:
        error = e.message

    # 2. Counts
    try:
        total_students = len(client.list_students())
    except ConsoleError:
        total_students = 0

    return templates.TemplateResponse(request, "dashboard.html", {
        "session": session,
        "summary": summary,
        "receipt_count": receipt_count,
        "total_students": total_students,
        "error": error,
    })
