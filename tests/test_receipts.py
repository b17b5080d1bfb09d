import pytest

from conftest import txn
from schemas.fees import Transaction
from services.errors import ReceiptError
from services.receipts import find_student, group_receipts, receipt_for_slip, summarize_collection


def build(*items):
    return [Transaction.model_validate(t) for t in items]


def test_group_receipts_by_slip_in_first_seen_order():
    transactions = build(
        txn(1, "A", 100, slab_label="Q1"),
        txn(2, "A", 50, concession=10, slab_label="Q2"),
        txn(3, "B", 75, student_id="s2"),
    )

    receipts = group_receipts(transactions)

    assert [r.slip_id for r in receipts] == ["A", "B"]
    assert [r.total_amount for r in receipts] == [150, 75]
    assert receipts[0].total_concession == 10
    assert receipts[0].net_paid == 140
    assert receipts[0].slabs == ["Q1", "Q2"]
    assert receipts[1].student_id == "s2"


def test_group_receipts_empty():
    assert group_receipts([]) == []


def test_receipt_for_slip_selects_matching_lines():
    transactions = build(txn(1, "A", 100), txn(2, 9, 40))

    receipt = receipt_for_slip(transactions, 9)

    assert receipt.slip_id == "9"
    assert receipt.total_amount == 40


def test_receipt_for_unknown_slip():
    with pytest.raises(ReceiptError) as exc:
        receipt_for_slip(build(txn(1, "A", 100)), "Z")
    assert exc.value.message == "No transactions found for this Slip ID"


def test_receipt_student_comes_from_embedded_record():
    receipt = receipt_for_slip(build(txn(1, "A", 100, student={"id": 1, "name": "Asha"})), "A")
    assert receipt.student["name"] == "Asha"


def test_summarize_collection_splits_by_mode():
    transactions = build(
        txn(1, "A", 100, mode="Cash"),
        txn(2, "B", 60, mode="online"),
        txn(3, "C", 40, mode="card"),
    )

    summary = summarize_collection(transactions)

    assert summary == {"total": 200, "cash": 100, "online": 60}


def test_summarize_collection_prefers_server_total():
    assert summarize_collection(build(txn(1, "A", 100)), total_collection=120)["total"] == 120


def test_find_student_compares_ids_as_strings():
    students = [{"id": 1, "name": "Asha"}, {"id": 2, "name": "Ravi"}]
    assert find_student(students, "2")["name"] == "Ravi"
    assert find_student(students, "3") is None
