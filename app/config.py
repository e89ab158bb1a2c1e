"""
Application configuration from environment variables.

.env is loaded with python-dotenv in development only, before anything is read.
Validates critical secrets at module load; missing values raise RuntimeError.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Environment: development | production (affects .env loading)
ENV = os.getenv("ENV", "development").lower()

if ENV == "development":
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# --- Required (raise if missing) ---
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
JWT_SECRET = os.getenv("JWT_SECRET")
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI")

for name, val in [
    ("ADMIN_USERNAME", ADMIN_USERNAME),
    ("ADMIN_PASSWORD", ADMIN_PASSWORD),
    ("JWT_SECRET", JWT_SECRET),
    ("GOOGLE_CLIENT_ID", GOOGLE_CLIENT_ID),
    ("GOOGLE_CLIENT_SECRET", GOOGLE_CLIENT_SECRET),
    ("GOOGLE_REDIRECT_URI", GOOGLE_REDIRECT_URI),
]:
    if not val or not str(val).strip():
        raise RuntimeError(f"Required env var {name} is missing or empty")

JWT_ALGORITHM = "HS256"

# Only permission requested from Google: files created by this app
GOOGLE_DRIVE_SCOPE = "https://www.googleapis.com/auth/drive.file"

# --- Optional ---
# Delegated credential as JSON, pasted from the log after the consent flow
GOOGLE_OAUTH_TOKEN = os.getenv("GOOGLE_OAUTH_TOKEN")

GOOGLE_DRIVE_FOLDER_ID = os.getenv("GOOGLE_DRIVE_FOLDER_ID") or None

N8N_YOUTUBE_LINK_WEBHOOK = os.getenv("N8N_YOUTUBE_LINK_WEBHOOK") or None
N8N_PASTE_TEXT_WEBHOOK = os.getenv("N8N_PASTE_TEXT_WEBHOOK") or None


def _int_env(key: str, default: int) -> int:
    try:
        return max(1, int(os.getenv(key, str(default))))
    except ValueError:
        return default


PORT = _int_env("PORT", 5000)

_DEFAULT_ORIGINS = (
    "http://localhost:3000,"
    "http://localhost:5173,"
    "https://multiformat-to-pdf.netlify.app"
)
ALLOWED_ORIGINS = [
    origin.strip().rstrip("/")
    for origin in os.getenv("ALLOWED_ORIGINS", _DEFAULT_ORIGINS).split(",")
    if origin.strip()
]

# Session token lifetimes (seconds): default login vs. "remember me"
JWT_SESSION_MAX_AGE = _int_env("JWT_SESSION_MAX_AGE", 24 * 60 * 60)
JWT_REMEMBER_ME_MAX_AGE = _int_env("JWT_REMEMBER_ME_MAX_AGE", 30 * 24 * 60 * 60)

# Upload limits per request
MAX_UPLOAD_FILES = _int_env("MAX_UPLOAD_FILES", 50)
MAX_UPLOAD_FILE_SIZE_BYTES = _int_env("MAX_UPLOAD_FILE_SIZE_BYTES", 100 * 1024 * 1024)

# Request timeouts (connect, read) in seconds
OAUTH_REQUEST_TIMEOUT = (5, 30)
DRIVE_REQUEST_TIMEOUT = (5, 60)
DRIVE_UPLOAD_TIMEOUT = (5, 300)  # large media bodies
WEBHOOK_TIMEOUT = (5, 120)  # n8n workflows may run synchronously

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _log_level_env(key: str, default: str = "INFO") -> str:
    level = os.getenv(key, default).strip().upper()
    return level if level in _LOG_LEVELS else default


LOG_LEVEL = _log_level_env("LOG_LEVEL")
