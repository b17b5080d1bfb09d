"""
Receipt Grouping - rebuilds logical receipts from flat transaction lists.

All lines sharing a slip id were submitted together, so grouping by slip id
gives back the original multi-slab payment. The first line of a group (in the
order the server returned them) supplies the shared student/date/mode.
"""
from typing import List, Optional

from pydantic import BaseModel

from schemas.fees import Transaction
from services.errors import ReceiptError


class Receipt(BaseModel):
    slip_id: str
    transactions: List[Transaction]
    total_amount: float
    total_concession: float
    student_id: Optional[str] = None
    payment_date: Optional[str] = None
    mode: Optional[str] = None

    @property
    def net_paid(self) -> float:
        return self.total_amount - self.total_concession

    @property
    def slabs(self) -> List[str]:
        return [t.slab for t in self.transactions if t.slab]

    @property
    def student(self) -> Optional[dict]:
        return self.transactions[0].student if self.transactions else None


def _build_receipt(slip_id: str, group: List[Transaction]) -> Receipt:
    first = group[0]
    return Receipt(
        slip_id=slip_id,
        transactions=group,
        total_amount=sum(t.amount for t in group),
        total_concession=sum(t.concession or 0 for t in group),
        student_id=first.student_id,
        payment_date=first.payment_date,
        mode=first.mode,
    )


def group_receipts(transactions: List[Transaction]) -> List[Receipt]:
    groups = {}  # dicts keep first-seen slip order
    for t in transactions:
        groups.setdefault(t.slip_id, []).append(t)
    return [_build_receipt(slip_id, group) for slip_id, group in groups.items()]


def receipt_for_slip(transactions: List[Transaction], slip_id: str) -> Receipt:
    group = [t for t in transactions if t.slip_id == str(slip_id)]
    if not group:
        raise ReceiptError("No transactions found for this Slip ID")
    return _build_receipt(str(slip_id), group)


def summarize_collection(transactions: List[Transaction], total_collection: Optional[float] = None) -> dict:
    """Totals for the collection cards; the server's total wins when it sends one."""
    total = total_collection
    if total is None:
        total = sum(t.amount or 0 for t in transactions)
    return {
        "total": total,
        "cash": sum(t.amount for t in transactions if (t.mode or "").lower() == "cash"),
        "online": sum(t.amount for t in transactions if (t.mode or "").lower() == "online"),
    }


def find_student(students: List[dict], student_id: Optional[str]) -> Optional[dict]:
    for s in students:
        if str(s.get("id")) == str(student_id):
            return s
    return None
