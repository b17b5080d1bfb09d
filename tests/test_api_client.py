import pytest
import requests

from conftest import BASE_URL, FakeResponse, txn
from schemas.fees import PaymentLine, PaymentPayload
from services.api_client import TransportApiClient, normalize_org_profile, normalize_transactions
from services.errors import NetworkError, ValidationError


def test_bearer_token_and_timeout_sent(client, http):
    http.routes[("GET", "/students")] = []

    client.list_students()

    call = http.calls[0]
    assert call["headers"]["Authorization"] == "Bearer tok"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["timeout"] == client.timeout


def test_no_authorization_header_without_token(http):
    http.routes[("POST", "/auth/login")] = {"token": "t"}
    TransportApiClient(base_url=BASE_URL, session=http).login("a@b.c", "pw")

    assert "Authorization" not in http.calls[0]["headers"]
    assert http.calls[0]["json"] == {"email": "a@b.c", "password": "pw"}


def test_server_message_becomes_network_error(client, http):
    http.routes[("GET", "/students")] = FakeResponse(400, {"message": "Token invalid"})

    with pytest.raises(NetworkError) as exc:
        client.list_students()

    assert exc.value.message == "Token invalid"
    assert exc.value.upstream_status == 400


def test_fallback_message_when_body_is_not_json(client, http):
    http.routes[("GET", "/classes")] = FakeResponse(500, raw=b"<html>oops</html>")

    with pytest.raises(NetworkError) as exc:
        client.list_classes()

    assert exc.value.message == "Failed to load classes"


def test_connection_error_becomes_network_error(client, http):
    http.routes[("GET", "/transactions/today")] = requests.exceptions.ConnectionError("refused")

    with pytest.raises(NetworkError) as exc:
        client.get_today_transactions()

    assert exc.value.message == "Failed to load transactions"
    assert exc.value.upstream_status is None


def test_transactions_by_slip_accepts_bare_array(client, http):
    http.routes[("GET", "/transactions")] = [txn(1, "A", 100), txn(2, "A", 50)]

    transactions = client.get_transactions_by_slip("A")

    assert [t.amount for t in transactions] == [100, 50]
    assert http.calls[0]["params"] == {"slipId": "A"}


def test_transactions_by_slip_accepts_wrapped_object(client, http):
    http.routes[("GET", "/transactions")] = {"transactions": [txn(1, "A", 100)], "totalCollection": 100}

    transactions = client.get_transactions_by_slip("A")

    assert [t.id for t in transactions] == ["1"]


def test_normalize_transactions_shapes():
    assert normalize_transactions(None).transactions == []
    batch = normalize_transactions({"transactions": [txn(1, "A", 10)], "totalCollection": 10})
    assert batch.total_collection == 10
    with pytest.raises(NetworkError):
        normalize_transactions("nonsense")


def test_filter_by_date_sends_both_dates(client, http):
    http.routes[("GET", "/transactions/filter-by-date")] = {"transactions": [], "totalCollection": 0}

    batch = client.filter_transactions_by_date("2024-06-01", "2024-06-30")

    assert batch.total_collection == 0
    assert http.calls[0]["params"] == {"startDate": "2024-06-01", "endDate": "2024-06-30"}


def test_create_transactions_returns_slip_id(client, http):
    http.routes[("POST", "/transactions")] = {"slipId": 12}
    payload = PaymentPayload(
        student_id="s1",
        mode="cash",
        slabs=[PaymentLine(fee_structure_id="fs1", amount=100, payment_date="2024-06-01")],
    )

    assert client.create_transactions(payload) == "12"
    assert "transactionId" not in http.calls[0]["json"]["slabs"][0]


def test_create_transactions_without_slip_id(client, http):
    http.routes[("POST", "/transactions")] = {}
    payload = PaymentPayload(student_id="s1", mode="cash", slabs=[])

    with pytest.raises(NetworkError):
        client.create_transactions(payload)


def test_empty_response_body_is_none(client, http):
    http.routes[("DELETE", "/transactions/5")] = FakeResponse(204)
    assert client.delete_transaction("5") is None


def test_dues_default_student_id(client, http):
    http.routes[("GET", "/transactions/fee-due-details/s1")] = {"slabs": []}
    assert client.get_fee_due_details("s1").student_id == "s1"


def test_all_due_details_accepts_data_wrapper(client, http):
    http.routes[("GET", "/transactions/fee-due-details")] = {"data": [{"studentId": 1}]}
    assert client.get_all_fee_due_details() == [{"studentId": 1}]


@pytest.mark.parametrize("body,name", [
    ([{"name": "Green Valley School"}], "Green Valley School"),
    ({"name": "Green Valley School"}, "Green Valley School"),
])
def test_org_profile_list_or_object(client, http, body, name):
    http.routes[("GET", "/transport-org/profile")] = body
    assert client.get_org_profile().name == name


def test_org_profile_missing():
    assert normalize_org_profile([]) is None


def test_master_resource_crud_paths(client, http):
    http.routes[("PUT", "/fine-settings/3")] = {"id": 3}

    client.update_resource("fine-settings", "3", {"amount": 10})

    assert http.calls[0]["json"] == {"amount": 10}


def test_unknown_master_resource(client):
    with pytest.raises(ValidationError):
        client.list_resource("payroll")
