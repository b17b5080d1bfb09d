"""
Fee Collection Router - collect screen, slab editing, batch submission,
today's history and receipts
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, Field

from config import TEMPLATES_DIR
from models.sessions import ConsoleSession
from routers.deps import get_api_client, get_reconciliation, require_admin
from schemas.fees import FeeSlab
from services.api_client import TransportApiClient
from services.errors import ConsoleError, ValidationError
from services.receipt_pdf import build_slip_receipt
from services.receipts import Receipt, find_student, group_receipts, summarize_collection
from services.reconciliation import FeeReconciliation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Fee Collection"], dependencies=[Depends(require_admin)])
templates = Jinja2Templates(directory=TEMPLATES_DIR)

# =====================
# PYDANTIC SCHEMAS
# =====================

class SlabFieldUpdate(BaseModel):
    slab: str
    field: str  # concession, collection
    value: float


class CollectRequest(BaseModel):
    mode: str = "cash"  # cash, online
    transaction_id: Optional[str] = Field(None, alias="transactionId")

    model_config = ConfigDict(populate_by_name=True)


class TransactionUpdate(BaseModel):
    amount: float = Field(ge=0)
    concession: float = Field(0.0, ge=0)
    mode: str  # Cash, Card, Online
    payment_date: Optional[str] = Field(None, alias="paymentDate")

    model_config = ConfigDict(populate_by_name=True)


# =====================
# HELPER FUNCTIONS
# =====================

def slab_json(slab: FeeSlab) -> dict:
    data = slab.model_dump(by_alias=True)
    data["editable"] = slab.is_editable
    return data


def receipt_json(receipt: Receipt, students: List[dict]) -> dict:
    student = receipt.student or find_student(students, receipt.student_id) or {}
    return {
        "slipId": receipt.slip_id,
        "studentId": receipt.student_id,
        "studentName": student.get("name") or "Unknown",
        "admissionNumber": student.get("admissionNumber") or "-",
        "slabs": receipt.slabs,
        "totalAmount": receipt.total_amount,
        "totalConcession": receipt.total_concession,
        "paymentDate": receipt.payment_date,
        "mode": receipt.mode,
        # Edit/delete act on the first line of the slip
        "firstTransactionId": receipt.transactions[0].id,
    }


def dues_json(vm: FeeReconciliation) -> dict:
    return {
        "studentId": vm.student_id,
        "slabs": [slab_json(s) for s in vm.slabs],
        "totals": vm.totals(),
    }


def _iso_date(value: Optional[str]) -> str:
    if not value:
        return datetime.now(timezone.utc).isoformat()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
    except ValueError:
        raise ValidationError("Invalid payment date")


# =====================
# WEB PAGE
# =====================

@router.get("/fees/collect")
def fee_collect_page(
    request: Request,
    session: ConsoleSession = Depends(require_admin),
    client: TransportApiClient = Depends(get_api_client),
    vm: FeeReconciliation = Depends(get_reconciliation),
):
    errors = []
    students, classes, receipts, summary = [], [], [], summarize_collection([])

    # Each list loads independently; a failure is a notification, not a dead page
    try:
        students = client.list_students()
    except ConsoleError as e:
        errors.append(e.message)
    try:
        classes = client.list_classes()
    except ConsoleError as e:
        errors.append(e.message)
    try:
        batch = vm.load_transactions()
        receipts = [receipt_json(r, students) for r in group_receipts(batch.transactions)]
        summary = summarize_collection(batch.transactions, batch.total_collection)
    except ConsoleError as e:
        errors.append(f"Failed to load transactions: {e.message}")

    return templates.TemplateResponse(request, "fee_collect.html", {
        "session": session,
        "students": students,
        "classes": classes,
        "receipts": receipts,
        "summary": summary,
        "dues": dues_json(vm),
        "errors": errors,
    })


# =====================
# RECONCILIATION APIs
# =====================

@router.get("/api/v1/fee-collection/dues/{student_id}")
def load_student_dues(student_id: str, vm: FeeReconciliation = Depends(get_reconciliation)):
    vm.load_dues(student_id)
    return dues_json(vm)


@router.post("/api/v1/fee-collection/slabs")
def update_slab(data: SlabFieldUpdate, vm: FeeReconciliation = Depends(get_reconciliation)):
    slab = vm.update_slab_field(data.slab, data.field, data.value)
    return {"slab": slab_json(slab), "totals": vm.totals()}


@router.post("/api/v1/fee-collection/collect")
def collect_all(data: CollectRequest, vm: FeeReconciliation = Depends(get_reconciliation)):
    result = vm.collect_all(data.mode, data.transaction_id)
    return {
        "message": "All payments recorded",
        "slipId": result.slip_id,
        "slabs": [line.fee_structure_id for line in result.lines],
        "totalAmount": result.total_amount,
        "totalConcession": result.total_concession,
        "dues": dues_json(vm),
        # Payment stands; the screen just could not refresh
        "warning": result.reload_error,
    }


@router.post("/api/v1/fee-collection/reset")
def reset_collection(vm: FeeReconciliation = Depends(get_reconciliation)):
    vm.reset()
    return {"message": "Cleared"}


# =====================
# TODAY'S HISTORY APIs
# =====================

@router.get("/api/v1/fee-collection/transactions/today")
def today_transactions(
    client: TransportApiClient = Depends(get_api_client),
    vm: FeeReconciliation = Depends(get_reconciliation),
):
    batch = vm.load_transactions()
    students = client.list_students()
    return {
        "receipts": [receipt_json(r, students) for r in group_receipts(batch.transactions)],
        "totalCollection": summarize_collection(batch.transactions, batch.total_collection)["total"],
    }


@router.put("/api/v1/fee-collection/transactions/{transaction_id}")
def update_transaction(
    transaction_id: str,
    data: TransactionUpdate,
    client: TransportApiClient = Depends(get_api_client),
    vm: FeeReconciliation = Depends(get_reconciliation),
):
    body = data.model_dump(by_alias=True)
    body["paymentDate"] = _iso_date(data.payment_date)
    client.update_transaction(transaction_id, body)
    logger.info("Updated transaction %s", transaction_id)

    vm.load_transactions()
    if vm.student_id:
        vm.load_dues(vm.student_id)
    return {"message": "Transaction updated"}


@router.delete("/api/v1/fee-collection/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: str,
    client: TransportApiClient = Depends(get_api_client),
    vm: FeeReconciliation = Depends(get_reconciliation),
):
    client.delete_transaction(transaction_id)
    logger.info("Deleted transaction %s", transaction_id)

    vm.load_transactions()
    if vm.student_id:
        vm.load_dues(vm.student_id)
    return {"message": "Transaction deleted"}


# =====================
# RECEIPT API
# =====================

@router.get("/fees/receipt/{slip_id}.pdf")
def print_receipt(slip_id: str, client: TransportApiClient = Depends(get_api_client)):
    receipt, pdf = build_slip_receipt(client, slip_id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="receipt-{receipt.slip_id}.pdf"'},
    )
