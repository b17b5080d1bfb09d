import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

# --- UPSTREAM TRANSPORT FEE SERVICE ---
TRANSPORT_API_URL = os.getenv("TRANSPORT_API_URL", "http://localhost:2100/api").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))

# --- LOCAL STORAGE (console sessions only) ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./console.db")

# --- SESSIONS ---
SESSION_COOKIE = os.getenv("SESSION_COOKIE", "console_session")
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", "86400"))  # 24 hours

# --- LOGGING ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

TEMPLATES_DIR = str(BASE_DIR / "templates")
STATIC_DIR = str(BASE_DIR / "static")

# --- CORS (comma separated, empty = same-origin only) ---
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
