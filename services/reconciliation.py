"""
Fee Reconciliation View-Model

Keeps an editable working copy of one student's fee slabs and turns the
entered concession/collection values into a single batch payment.

- finalPayable = max(dueAmount + fine - concession - collection, 0), recomputed
  on every edit of that slab only
- only Due slabs with collection > 0 are submitted
- the server assigns one slip id to the whole batch; after a successful
  submission dues and today's history are reloaded, never merged locally
"""
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from config import SESSION_MAX_AGE
from schemas.fees import FeeSlab, PaymentLine, PaymentPayload, SubmissionResult, TransactionBatch
from services.api_client import TransportApiClient
from services.errors import ConsoleError, ValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("concession", "collection")
PAYMENT_MODES = ("cash", "online")


def compute_final_payable(slab: FeeSlab) -> float:
    return max(slab.due_amount + slab.fine - slab.concession - slab.collection, 0)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FeeReconciliation:
    def __init__(self, client: TransportApiClient, clock: Callable[[], str] = _utc_now):
        self.client = client
        self.clock = clock
        self.student_id: Optional[str] = None
        self.slabs: List[FeeSlab] = []
        self.transactions = TransactionBatch()
        self.last_slip_id: Optional[str] = None
        self._generation = 0
        self._lock = threading.Lock()

    # =====================
    # LOADING
    # =====================

    def load_dues(self, student_id: str) -> List[FeeSlab]:
        """
        Fetch the student's slabs and make them the working copy.

        Each load gets a generation number. If another load starts while this
        one is in flight, this response is stale and is dropped.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self.student_id = student_id
            # Nothing from the previous student may survive a failed fetch
            self.slabs = []

        dues = self.client.get_fee_due_details(student_id)
        slabs = []
        for s in dues.slabs:
            slab = s.model_copy(update={"collection": 0.0})
            if slab.is_due:
                slab.final_payable = compute_final_payable(slab)
            slabs.append(slab)

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale dues for student %s", student_id)
                return list(self.slabs)
            self.slabs = slabs
            return list(self.slabs)

    def load_transactions(self) -> TransactionBatch:
        self.transactions = self.client.get_today_transactions()
        return self.transactions

    def reset(self):
        """Modal closed: throw the working copy away."""
        with self._lock:
            self._generation += 1
            self.student_id = None
            self.slabs = []
            self.last_slip_id = None

    # =====================
    # EDITING
    # =====================

    def get_slab(self, label: str) -> FeeSlab:
        for slab in self.slabs:
            if slab.slab == label:
                return slab
        raise ValidationError(f"Unknown slab: {label}")

    def update_slab_field(self, label: str, field: str, value) -> FeeSlab:
        if field not in EDITABLE_FIELDS:
            raise ValidationError(f"Field '{field}' cannot be edited")
        try:
            amount = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field.capitalize()} must be a number")
        if amount != amount or amount < 0:  # NaN or negative
            raise ValidationError(f"{field.capitalize()} cannot be negative")

        with self._lock:
            slab = self.get_slab(label)
            if not slab.is_editable:
                raise ValidationError(f"Slab {label} has nothing left to pay")
            if field == "concession" and amount > slab.due_amount + slab.fine:
                raise ValidationError(f"Concession for {label} cannot exceed due amount plus fine")

            updated = slab.model_copy(update={field: amount})
            updated.final_payable = compute_final_payable(updated)
            self.slabs = [updated if s.slab == label else s for s in self.slabs]
            return updated

    def totals(self) -> dict:
        return {
            "due": sum(s.due_amount for s in self.slabs),
            "fine": sum(s.fine for s in self.slabs),
            "concession": sum(s.concession for s in self.slabs),
            "collection": sum(s.collection for s in self.slabs),
            "final_payable": sum(s.final_payable for s in self.slabs),
        }

    # =====================
    # SUBMISSION
    # =====================

    def collectable_slabs(self) -> List[FeeSlab]:
        return [s for s in self.slabs if s.collection > 0 and s.is_due]

    def build_payload(self, mode: str, transaction_id: Optional[str] = None) -> PaymentPayload:
        valid = self.collectable_slabs()
        if not valid:
            raise ValidationError("No valid collection amounts entered")
        if mode not in PAYMENT_MODES:
            raise ValidationError(f"Unsupported payment mode: {mode}")

        if mode == "online":
            transaction_id = (transaction_id or "").strip()
            if not transaction_id:
                raise ValidationError("Transaction ID is required for online payments")
        else:
            transaction_id = None

        # A locked input must never carry more than the slab can take
        for s in valid:
            if s.concession + s.collection > s.due_amount + s.fine:
                raise ValidationError(f"Collection for {s.slab} exceeds the payable amount")

        payment_date = self.clock()
        lines = [
            PaymentLine(
                fee_structure_id=s.fee_structure_id,
                amount=s.collection,
                concession=s.concession,
                fine_concession=0,
                payment_date=payment_date,
                transaction_id=transaction_id,
            )
            for s in valid
        ]
        return PaymentPayload(student_id=self.student_id, mode=mode, status="success", slabs=lines)

    def collect_all(self, mode: str = "cash", transaction_id: Optional[str] = None) -> SubmissionResult:
        if not self.student_id:
            raise ValidationError("Select a student")

        payload = self.build_payload(mode, transaction_id)
        slip_id = self.client.create_transactions(payload)
        logger.info("Recorded %d slab payment(s) for student %s under slip %s",
                    len(payload.slabs), self.student_id, slip_id)

        self.last_slip_id = slip_id
        with self._lock:
            # Recorded upstream; the entered amounts must not be sent again
            self.slabs = []

        result = SubmissionResult(
            slip_id=slip_id,
            lines=payload.slabs,
            total_amount=sum(line.amount for line in payload.slabs),
            total_concession=sum(line.concession for line in payload.slabs),
        )

        try:
            self.load_dues(self.student_id)
            self.load_transactions()
        except ConsoleError as e:
            logger.warning("Slip %s recorded but refresh failed: %s", slip_id, e.message)
            result.reload_error = e.message
        return result


class ReconciliationRegistry:
    """One working copy per console session; copies idle longer than a session lives are dropped."""

    def __init__(self, max_idle: float = SESSION_MAX_AGE, clock: Callable[[], float] = time.monotonic):
        self.max_idle = max_idle
        self.clock = clock
        self._items = {}  # session id -> (working copy, last used)
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._items)

    def get(self, session_id: str, client: TransportApiClient) -> FeeReconciliation:
        with self._lock:
            now = self.clock()
            self._prune(now)
            entry = self._items.get(session_id)
            if entry is None:
                vm = FeeReconciliation(client)
            else:
                vm = entry[0]
                vm.client = client  # Token may have been refreshed
            self._items[session_id] = (vm, now)
            return vm

    def discard(self, session_id: str):
        with self._lock:
            self._items.pop(session_id, None)

    def _prune(self, now: float):
        idle = [sid for sid, (_, used) in self._items.items() if now - used > self.max_idle]
        for sid in idle:
            del self._items[sid]
        if idle:
            logger.info("Dropped %d idle fee collection session(s)", len(idle))


registry = ReconciliationRegistry()
