"""
Wire models for the upstream transport fee service.

The service speaks camelCase JSON; fields are snake_case here with the wire
name as alias. Ids arrive as strings or numbers depending on the endpoint, so
they are normalized to strings.
"""
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from typing import Annotated, List, Optional


def _id_to_str(value):
    if value is None:
        return value
    return str(value)


def _none_to_zero(value):
    return 0.0 if value is None else value


IdStr = Annotated[str, BeforeValidator(_id_to_str)]
Amount = Annotated[float, BeforeValidator(_none_to_zero)]


# 1. FEE SLAB - one installment of one student (working copy while collecting)
class FeeSlab(BaseModel):
    slab: str
    fee_structure_id: IdStr = Field(alias="feeStructureId")
    due_amount: Amount = Field(0.0, alias="dueAmount")
    fine: Amount = 0.0
    concession: Amount = 0.0
    collection: Amount = 0.0
    final_payable: Amount = Field(0.0, alias="finalPayable")
    status: str = "Due"  # Due, Paid
    paid_amount: Amount = Field(0.0, alias="paidAmount")
    payment_date: Optional[str] = Field(None, alias="paymentDate")
    due_date: Optional[str] = Field(None, alias="dueDate")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_due(self) -> bool:
        return self.status == "Due"

    @property
    def is_editable(self) -> bool:
        # Inputs lock once nothing is left to pay
        return self.is_due and self.final_payable > 0


class StudentDues(BaseModel):
    student_id: IdStr = Field(alias="studentId")
    slabs: List[FeeSlab] = []

    model_config = ConfigDict(populate_by_name=True)


# 2. TRANSACTION - one server-recorded slab payment
class Transaction(BaseModel):
    id: IdStr
    slip_id: IdStr = Field(alias="slipId")
    student_id: Optional[IdStr] = Field(None, alias="studentId")
    fee_structure_id: Optional[IdStr] = Field(None, alias="feeStructureId")
    slab: Optional[str] = None
    amount: Amount = 0.0
    concession: Amount = 0.0
    fine: Optional[float] = None
    payment_date: Optional[str] = Field(None, alias="paymentDate")
    mode: Optional[str] = None  # cash, online, card
    status: Optional[str] = None
    student: Optional[dict] = None  # Some endpoints embed the student

    model_config = ConfigDict(populate_by_name=True)


class TransactionBatch(BaseModel):
    """Normalized result of every transaction listing endpoint."""
    transactions: List[Transaction] = []
    total_collection: Optional[float] = None


# 3. PAYMENT SUBMISSION
class PaymentLine(BaseModel):
    fee_structure_id: str = Field(alias="feeStructureId")
    amount: float
    concession: float = 0.0
    fine_concession: float = Field(0.0, alias="fineConcession")
    payment_date: str = Field(alias="paymentDate")
    transaction_id: Optional[str] = Field(None, alias="transactionId")  # Online payments only

    model_config = ConfigDict(populate_by_name=True)


class PaymentPayload(BaseModel):
    student_id: str = Field(alias="studentId")
    mode: str
    status: str = "success"
    slabs: List[PaymentLine]

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        # exclude_none drops transactionId from cash lines
        return self.model_dump(by_alias=True, exclude_none=True)


class SubmissionResult(BaseModel):
    slip_id: str
    lines: List[PaymentLine]
    total_amount: float
    total_concession: float
    reload_error: Optional[str] = None  # Set when the payment went through but the refresh did not


# 4. OPT-OUT / FEE STRUCTURE
class OptOutSlab(BaseModel):
    id: IdStr
    student_id: IdStr = Field(alias="studentId")
    fee_structure_id: IdStr = Field(alias="feeStructureId")
    student: Optional[dict] = None
    fee_structure: Optional[dict] = Field(None, alias="feeStructure")

    model_config = ConfigDict(populate_by_name=True)


class FeeStructure(BaseModel):
    id: IdStr
    slab: str
    amount: Optional[float] = None
    route_id: Optional[IdStr] = Field(None, alias="routeId")
    stop_id: Optional[IdStr] = Field(None, alias="stopId")
    due_date: Optional[str] = Field(None, alias="dueDate")

    model_config = ConfigDict(populate_by_name=True)


# 5. ORGANIZATION LETTERHEAD
class OrgProfile(BaseModel):
    id: Optional[IdStr] = None
    name: Optional[str] = None
    address: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
