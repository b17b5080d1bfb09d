import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from config import CORS_ORIGINS, LOG_LEVEL, STATIC_DIR
from database import Base, engine
from services.errors import ConsoleError, LoginRequired

# --- IMPORT ROUTERS ---
from routers import auth, dashboard, fee_collection, masters, opt_outs, preferences, reports, student_portal

# --- IMPORT MODELS ---
from models.sessions import ConsoleSession  # noqa: F401  (registers the table)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# --- CREATE DATABASE TABLES ---
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Transport Fee Console")

# ==========================================
# ERROR HANDLERS
# ==========================================
@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=401, content={"detail": exc.message})
    return RedirectResponse(url=exc.login_url, status_code=302)


@app.exception_handler(ConsoleError)
async def console_error_handler(request: Request, exc: ConsoleError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ==========================================
# CORS MIDDLEWARE
# ==========================================
if CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# --- STATIC FILES ---
os.makedirs(STATIC_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

# --- REGISTER ROUTERS ---
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(fee_collection.router)
app.include_router(reports.router)
app.include_router(opt_outs.router)
app.include_router(masters.router)
app.include_router(student_portal.router)
app.include_router(preferences.router)
