"""
Transport API Client - the only place the console talks to the upstream
transport fee service.

Every failed call (connection error, timeout, non-2xx) becomes a NetworkError
carrying the server's message when it sent one. Loose response shapes are
normalized here so nothing above this module has to guess.
"""
import logging
from typing import Any, List, Optional

import requests

from config import REQUEST_TIMEOUT, TRANSPORT_API_URL
from schemas.fees import (
    FeeStructure,
    OptOutSlab,
    OrgProfile,
    PaymentPayload,
    StudentDues,
    Transaction,
    TransactionBatch,
)
from services.errors import NetworkError, ValidationError

logger = logging.getLogger(__name__)

# Master resources managed through plain CRUD screens
MASTER_RESOURCES = {
    "drivers": "/drivers",
    "routes": "/routes",
    "stops": "/stops",
    "vehicles": "/vehicles",
    "classes": "/classes",
    "students": "/students",
    "fine-settings": "/fine-settings",
    "fee-structures": "/fee-structures",
    "transport-org": "/transport-org/profile",
}


# =====================
# NORMALIZATION HELPERS
# =====================

def normalize_transactions(data: Any) -> TransactionBatch:
    """Accept either a bare array or ``{"transactions": [...], "totalCollection": n}``."""
    if data is None:
        return TransactionBatch()
    if isinstance(data, list):
        return TransactionBatch(transactions=[Transaction.model_validate(t) for t in data])
    if isinstance(data, dict):
        items = data.get("transactions") or []
        return TransactionBatch(
            transactions=[Transaction.model_validate(t) for t in items],
            total_collection=data.get("totalCollection"),
        )
    raise NetworkError("Unexpected transactions response")


def normalize_org_profile(data: Any) -> Optional[OrgProfile]:
    """The profile endpoint returns a list of profiles or a single object."""
    if isinstance(data, list):
        data = data[0] if data else None
    if not data:
        return None
    return OrgProfile.model_validate(data)


def _error_message(response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or fallback
    return fallback


class TransportApiClient:
    def __init__(self, base_url: str = TRANSPORT_API_URL, token: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.http = session or requests.Session()

    # --- LOW LEVEL ---
    def request(self, method: str, path: str, fallback: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        headers.setdefault("Content-Type", "application/json")
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise NetworkError(fallback) from e

        if not response.ok:
            message = _error_message(response, fallback)
            logger.warning("%s %s returned %s: %s", method, url, response.status_code, message)
            raise NetworkError(message, upstream_status=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(fallback) from e

    # =====================
    # AUTH
    # =====================

    def login(self, email: str, password: str) -> dict:
        return self.request("POST", "/auth/login", "Login failed",
                            json={"email": email, "password": password})

    def student_login(self, admission_number: str, password: str) -> dict:
        return self.request("POST", "/students/login", "Login failed",
                            json={"admissionNumber": admission_number, "password": password})

    # =====================
    # DUES & TRANSACTIONS
    # =====================

    def get_fee_due_details(self, student_id: str) -> StudentDues:
        data = self.request("GET", f"/transactions/fee-due-details/{student_id}",
                            "Failed to load due details") or {}
        data.setdefault("studentId", student_id)
        return StudentDues.model_validate(data)

    def get_all_fee_due_details(self) -> List[dict]:
        data = self.request("GET", "/transactions/fee-due-details", "Failed to load fee due details")
        if isinstance(data, dict):
            return data.get("data") or []
        return data or []

    def create_transactions(self, payload: PaymentPayload) -> str:
        data = self.request("POST", "/transactions", "Failed to record payments", json=payload.to_wire())
        slip_id = (data or {}).get("slipId")
        if slip_id is None:
            raise NetworkError("Server did not return a slip id")
        return str(slip_id)

    def get_transactions_by_slip(self, slip_id: str) -> List[Transaction]:
        data = self.request("GET", "/transactions", "Failed to load receipt transactions",
                            params={"slipId": slip_id})
        return normalize_transactions(data).transactions

    def get_today_transactions(self) -> TransactionBatch:
        data = self.request("GET", "/transactions/today", "Failed to load transactions")
        return normalize_transactions(data)

    def filter_transactions_by_date(self, start_date: str, end_date: str) -> TransactionBatch:
        data = self.request("GET", "/transactions/filter-by-date", "Failed to fetch transactions",
                            params={"startDate": start_date, "endDate": end_date})
        return normalize_transactions(data)

    def update_transaction(self, transaction_id: str, data: dict) -> Any:
        return self.request("PUT", f"/transactions/{transaction_id}", "Failed to update transaction", json=data)

    def delete_transaction(self, transaction_id: str) -> Any:
        return self.request("DELETE", f"/transactions/{transaction_id}", "Failed to delete transaction")

    # =====================
    # OPT-OUTS & STRUCTURES
    # =====================

    def list_opt_outs(self) -> List[OptOutSlab]:
        data = self.request("GET", "/opt-out-slabs", "Failed to load opt-outs") or []
        return [OptOutSlab.model_validate(o) for o in data]

    def create_opt_out(self, student_id: str, fee_structure_id: str) -> Any:
        return self.request("POST", "/opt-out-slabs", "Save failed",
                            json={"studentId": student_id, "feeStructureId": fee_structure_id})

    def delete_opt_out(self, opt_out_id: str) -> Any:
        return self.request("DELETE", f"/opt-out-slabs/{opt_out_id}", "Delete failed")

    def list_fee_structures(self) -> List[FeeStructure]:
        data = self.request("GET", "/fee-structures", "Failed to load slabs") or []
        return [FeeStructure.model_validate(f) for f in data]

    # =====================
    # REFERENCE DATA
    # =====================

    def list_students(self) -> List[dict]:
        return self.request("GET", "/students", "Failed to load students") or []

    def list_classes(self) -> List[dict]:
        return self.request("GET", "/classes", "Failed to load classes") or []

    def get_org_profile(self) -> Optional[OrgProfile]:
        data = self.request("GET", "/transport-org/profile", "Failed to load organization profile")
        return normalize_org_profile(data)

    # --- GENERIC MASTER CRUD ---
    def _master_path(self, resource: str) -> str:
        try:
            return MASTER_RESOURCES[resource]
        except KeyError:
            raise ValidationError(f"Unknown resource: {resource}")

    def list_resource(self, resource: str) -> Any:
        return self.request("GET", self._master_path(resource), f"Failed to load {resource}")

    def create_resource(self, resource: str, data: dict) -> Any:
        return self.request("POST", self._master_path(resource), f"Failed to save {resource}", json=data)

    def update_resource(self, resource: str, item_id: str, data: dict) -> Any:
        return self.request("PUT", f"{self._master_path(resource)}/{item_id}",
                            f"Failed to update {resource}", json=data)

    def delete_resource(self, resource: str, item_id: str) -> Any:
        return self.request("DELETE", f"{self._master_path(resource)}/{item_id}", f"Failed to delete {resource}")
