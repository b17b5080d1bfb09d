from fastapi import APIRouter, Depends, Request, Form
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from config import SESSION_COOKIE, SESSION_MAX_AGE, TEMPLATES_DIR
from routers.deps import get_public_api_client
from services.api_client import TransportApiClient
from services.errors import NetworkError
from services.session_store import SessionStore, get_session_store

# ✅ Router setup with prefix
router = APIRouter(prefix="/auth", tags=["Authentication"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _login_redirect(url: str, session_id: str) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=303)
    response.set_cookie(key=SESSION_COOKIE, value=session_id, max_age=SESSION_MAX_AGE, httponly=True)
    return response


# 1. Login Pages (GET)
@router.get("/login")
def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.get("/student-login")
def student_login_page(request: Request):
    return templates.TemplateResponse(request, "student_login.html", {"error": None})


# 2. Admin Login (POST)
@router.post("/login")
def process_login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    client: TransportApiClient = Depends(get_public_api_client),
    store: SessionStore = Depends(get_session_store),
):
    try:
        data = client.login(email.strip(), password)
    except NetworkError as e:
        return templates.TemplateResponse(request, "login.html", {"error": e.message}, status_code=401)
    if not data or not data.get("token"):
        return templates.TemplateResponse(request, "login.html", {"error": "Login failed"}, status_code=401)

    user = data.get("user") or {}
    session = store.create(
        role="admin",
        access_token=data["token"],
        user_id=user.get("id"),
        display_name=user.get("email") or email,
        info=user,
    )
    return _login_redirect("/", session.id)


# 3. Student Login (POST)
@router.post("/student-login")
def process_student_login(
    request: Request,
    admission_number: str = Form(...),
    password: str = Form(...),
    client: TransportApiClient = Depends(get_public_api_client),
    store: SessionStore = Depends(get_session_store),
):
    try:
        data = client.student_login(admission_number.strip(), password)
    except NetworkError as e:
        return templates.TemplateResponse(request, "student_login.html", {"error": e.message}, status_code=401)
    if not data or not data.get("token"):
        return templates.TemplateResponse(request, "student_login.html", {"error": "Login failed"}, status_code=401)

    student = data.get("student") or {}
    session = store.create(
        role="student",
        access_token=data["token"],
        user_id=student.get("id"),
        display_name=student.get("name"),
        info=student,
    )
    return _login_redirect("/student/dashboard", session.id)


# 4. Logout Route (GET)
@router.get("/logout")
def logout(request: Request, store: SessionStore = Depends(get_session_store)):
    """Drop the session row and cookie, then go back to the matching login page."""
    session_id = request.cookies.get(SESSION_COOKIE)
    session = store.get(session_id)
    login_url = "/auth/student-login" if session is not None and session.role == "student" else "/auth/login"

    store.clear(session_id)

    response = RedirectResponse(url=login_url, status_code=302)
    response.delete_cookie(SESSION_COOKIE)
    return response
