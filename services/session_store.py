"""
Console session store.

Holds what the browser console kept in local storage (upstream token, logged
in student's profile, sidebar flag) as explicit rows with a lifecycle:
created on login, read on each request, removed on logout or token expiry.
"""
import logging
import secrets
import time
from typing import Optional

from fastapi import Depends
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from database import get_db
from models.sessions import ConsoleSession
from services.reconciliation import registry

logger = logging.getLogger(__name__)


def token_expired(token: str, now: Optional[float] = None) -> bool:
    """
    Upstream tokens are JWTs issued by the transport service. Only the ``exp``
    claim is read; the signature is the service's business. Opaque tokens
    never expire on this side.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return False
    exp = claims.get("exp")
    if exp is None:
        return False
    return float(exp) <= (now if now is not None else time.time())


class SessionStore:
    def __init__(self, db: Session):
        self.db = db

    def create(self, role: str, access_token: str, user_id: Optional[str] = None,
               display_name: Optional[str] = None, info: Optional[dict] = None) -> ConsoleSession:
        row = ConsoleSession(
            id=secrets.token_urlsafe(32),
            role=role,
            access_token=access_token,
            user_id=str(user_id) if user_id is not None else None,
            display_name=display_name,
            info=info or {},
            sidebar_collapsed=False,
        )
        self.db.add(row)
        self.db.commit()
        logger.info("Opened %s session for %s", role, display_name or user_id)
        return row

    def get(self, session_id: Optional[str]) -> Optional[ConsoleSession]:
        if not session_id:
            return None
        row = self.db.query(ConsoleSession).filter(ConsoleSession.id == session_id).first()
        if row is None:
            return None
        if token_expired(row.access_token):
            logger.info("Session for %s expired", row.display_name or row.user_id)
            registry.discard(row.id)
            self.db.delete(row)
            self.db.commit()
            return None
        return row

    def set_sidebar_collapsed(self, session_id: str, collapsed: bool) -> bool:
        row = self.get(session_id)
        if row is None:
            return False
        row.sidebar_collapsed = collapsed
        self.db.commit()
        return True

    def clear(self, session_id: Optional[str]):
        if not session_id:
            return
        self.db.query(ConsoleSession).filter(ConsoleSession.id == session_id).delete()
        self.db.commit()
        registry.discard(session_id)


def get_session_store(db: Session = Depends(get_db)) -> SessionStore:
    return SessionStore(db)
