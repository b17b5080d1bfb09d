from fastapi import APIRouter, Depends
from pydantic import BaseModel

from models.sessions import ConsoleSession
from routers.deps import get_current_session
from services.session_store import SessionStore, get_session_store

router = APIRouter(prefix="/api/v1/preferences", tags=["Preferences"])


class SidebarToggle(BaseModel):
    collapsed: bool


@router.post("/sidebar")
def set_sidebar(
    data: SidebarToggle,
    session: ConsoleSession = Depends(get_current_session),
    store: SessionStore = Depends(get_session_store),
):
    store.set_sidebar_collapsed(session.id, data.collapsed)
    return {"collapsed": data.collapsed}
