from fastapi import Depends, Request

from config import SESSION_COOKIE
from models.sessions import ConsoleSession
from services.api_client import TransportApiClient
from services.errors import LoginRequired
from services.reconciliation import FeeReconciliation, registry
from services.session_store import SessionStore, get_session_store


def get_current_session(request: Request, store: SessionStore = Depends(get_session_store)) -> ConsoleSession:
    session = store.get(request.cookies.get(SESSION_COOKIE))
    if session is None:
        raise LoginRequired()
    return session


def require_admin(session: ConsoleSession = Depends(get_current_session)) -> ConsoleSession:
    if session.role != "admin":
        raise LoginRequired("Admin login required")
    return session


def require_student(request: Request, store: SessionStore = Depends(get_session_store)) -> ConsoleSession:
    session = store.get(request.cookies.get(SESSION_COOKIE))
    if session is None or session.role != "student":
        raise LoginRequired("Student login required", login_url="/auth/student-login")
    return session


def get_public_api_client() -> TransportApiClient:
    """Client without credentials, for the login calls."""
    return TransportApiClient()


def get_api_client(session: ConsoleSession = Depends(get_current_session)) -> TransportApiClient:
    return TransportApiClient(token=session.access_token)


def get_student_api_client(session: ConsoleSession = Depends(require_student)) -> TransportApiClient:
    return TransportApiClient(token=session.access_token)


def get_reconciliation(session: ConsoleSession = Depends(require_admin),
                       client: TransportApiClient = Depends(get_api_client)) -> FeeReconciliation:
    return registry.get(session.id, client)
