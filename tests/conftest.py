import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from models.sessions import ConsoleSession  # noqa: F401
from services.api_client import TransportApiClient

BASE_URL = "http://upstream.test/api"


class FakeResponse:
    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        self._body = body
        if raw is not None:
            self.content = raw
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode()

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.content)


class FakeHttp:
    """Records calls and answers from a (method, path) routing table, like requests.Session."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        path = url[len(BASE_URL):]
        self.calls.append({"method": method, "path": path, "headers": headers, "timeout": timeout, **kwargs})
        if (method, path) not in self.routes:
            return FakeResponse(404, {"message": f"No route {method} {path}"})
        answer = self.routes[(method, path)]
        if callable(answer):
            answer = answer(**kwargs)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse(200, answer)

    def paths(self, method=None):
        return [c["path"] for c in self.calls if method is None or c["method"] == method]


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def client(http):
    return TransportApiClient(base_url=BASE_URL, token="tok", session=http)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def slab(label, due=500, fine=0, concession=0, status="Due", fs_id=None, final=None):
    data = {
        "slab": label,
        "feeStructureId": fs_id or f"fs-{label}",
        "dueAmount": due,
        "fine": fine,
        "concession": concession,
        "status": status,
    }
    if final is not None:
        data["finalPayable"] = final
    return data


def txn(id, slip_id, amount, concession=0, student_id="s1", mode="cash", slab_label="Q1", **extra):
    return {
        "id": id,
        "slipId": slip_id,
        "studentId": student_id,
        "feeStructureId": f"fs-{slab_label}",
        "slab": slab_label,
        "amount": amount,
        "concession": concession,
        "mode": mode,
        "paymentDate": "2024-06-01T10:00:00Z",
        **extra,
    }
