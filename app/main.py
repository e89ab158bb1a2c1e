"""
Drive relay backend: admin login, Google Drive uploads, n8n webhook forwarding.

Configuration (and .env in development) is loaded by config. Adds CORS,
the JSON error envelope handlers, and the health route.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
)

from auth import router as auth_router
from credentials import DriveCredentials, get_drive_credentials
from drive import router as drive_router
from errors import RelayError
from n8n import router as n8n_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Google Drive Folder ID: %s", config.GOOGLE_DRIVE_FOLDER_ID)
    logger.info("n8n Paste Text Webhook: %s", config.N8N_PASTE_TEXT_WEBHOOK)
    logger.info("n8n YouTube Link Webhook: %s", config.N8N_YOUTUBE_LINK_WEBHOOK)
    logger.info("Login Username: %s", config.ADMIN_USERNAME)
    if get_drive_credentials().is_authenticated:
        logger.info("Authenticated with Google Drive")
    else:
        logger.warning("Not authenticated with Google Drive; get auth URL at /api/auth/url")
    yield


app = FastAPI(
    title="Drive Relay Backend",
    description="Admin login, Google Drive uploads and listing, n8n webhook forwarding.",
    lifespan=lifespan,
)

# CORS: explicit origins, allow credentials. Never use "*" with credentials.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    """Render the error body as-is: {error, details?, ...}."""
    return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions; log and return generic 500. Never leak stack traces."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


@app.get("/")
def health(credentials: DriveCredentials = Depends(get_drive_credentials)):
    return {
        "message": "Backend server is running!",
        "status": "OK",
        "authenticated": credentials.is_authenticated,
    }


app.include_router(auth_router)
app.include_router(drive_router)
app.include_router(n8n_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
