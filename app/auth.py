"""
Admin login, bearer-token gate, and Google OAuth 2.0 consent for Drive.

- /login checks the configured admin pair and returns a signed JWT.
- /verify echoes the token claims when the bearer token is valid.
- /url builds the Google consent URL (offline access, drive.file, forced consent).
- /callback exchanges the code, replaces the in-memory Drive credential and
  logs it for the operator to copy into GOOGLE_OAUTH_TOKEN.
- /status reports whether a Drive credential is held.
- get_current_user dependency guards every protected route.
- get_valid_access_token(credentials) returns a Drive access token, refreshing
  it in memory when it is about to expire.
"""
import json
import logging
import secrets
import time
from typing import Any
from urllib.parse import urlencode

import requests
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from jose import JWTError
from pydantic import BaseModel

from config import (
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_DRIVE_SCOPE,
    GOOGLE_REDIRECT_URI,
    OAUTH_REQUEST_TIMEOUT,
)
from credentials import DriveCredentials, get_drive_credentials
from errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    NotAuthenticatedWithProvider,
)
from security import create_jwt, decode_jwt

logger = logging.getLogger(__name__)
# Operator-facing channel for the manual credential copy step
operator_log = logging.getLogger("oauth.operator")

router = APIRouter(prefix="/api/auth")

GOOGLE_AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"


class OAuthExchangeError(Exception):
    """Raised when Google rejects a code exchange or token refresh."""

    def __init__(self, msg: str):
        self.msg = msg
        super().__init__(msg)


class LoginBody(BaseModel):
    """Admin login; missing or non-string fields are a mismatch (401), not a 400."""
    username: Any = None
    password: Any = None
    rememberMe: bool | None = False


def _matches(supplied: Any, expected: str) -> bool:
    if not isinstance(supplied, str):
        return False
    return secrets.compare_digest(supplied.encode(), expected.encode())


def get_current_user(request: Request) -> dict:
    """
    FastAPI dependency: read the bearer token from the Authorization header
    and return its claims. 401 if the token is missing; 403 if it is invalid
    or expired.
    """
    auth_header = request.headers.get("authorization")
    parts = auth_header.split(" ") if auth_header else []
    token = parts[1] if len(parts) > 1 else None
    if not token:
        raise MissingTokenError()
    try:
        return decode_jwt(token)
    except JWTError:
        raise InvalidTokenError()


def _token_request(data: dict) -> dict:
    """POST to Google's token endpoint; raises OAuthExchangeError on an error reply."""
    try:
        resp = requests.post(
            GOOGLE_TOKEN_ENDPOINT,
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=OAUTH_REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise OAuthExchangeError(str(e)) from e
    try:
        token_data = resp.json()
    except ValueError:
        raise OAuthExchangeError(f"Token endpoint returned {resp.status_code}")
    if not isinstance(token_data, dict):
        raise OAuthExchangeError("Token endpoint returned an unexpected body")
    if "error" in token_data:
        raise OAuthExchangeError(
            token_data.get("error_description") or token_data["error"]
        )
    if not token_data.get("access_token"):
        raise OAuthExchangeError("Token exchange did not return access_token")
    return token_data


def _with_expiry_date(token_data: dict) -> dict:
    """Replace relative expires_in with absolute expiry_date (epoch ms)."""
    tokens = dict(token_data)
    expires_in = tokens.pop("expires_in", None)
    if expires_in is not None:
        tokens["expiry_date"] = int((time.time() + int(expires_in)) * 1000)
    return tokens


def build_authorization_url() -> str:
    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "access_type": "offline",
        "scope": GOOGLE_DRIVE_SCOPE,
        "prompt": "consent",
    }
    return f"{GOOGLE_AUTH_ENDPOINT}?{urlencode(params)}"


def exchange_code(code: str) -> dict:
    """Exchange an authorization code for tokens; returns the credential dict."""
    token_data = _token_request({
        "client_id": GOOGLE_CLIENT_ID,
        "client_secret": GOOGLE_CLIENT_SECRET,
        "code": code,
        "grant_type": "authorization_code",
        "redirect_uri": GOOGLE_REDIRECT_URI,
    })
    return _with_expiry_date(token_data)


def get_valid_access_token(credentials: DriveCredentials) -> str:
    """
    Return a Drive access token from the held credential. Refreshes in memory
    when the token expires within 5 minutes and a refresh token is held.
    Raises 401 if no credential is held or Google refuses the refresh.
    """
    if not credentials.is_authenticated:
        raise NotAuthenticatedWithProvider()
    if credentials.refresh_token and credentials.expires_within(5 * 60):
        try:
            token_data = _token_request({
                "client_id": GOOGLE_CLIENT_ID,
                "client_secret": GOOGLE_CLIENT_SECRET,
                "refresh_token": credentials.refresh_token,
                "grant_type": "refresh_token",
            })
        except OAuthExchangeError as e:
            logger.error("Failed to refresh Google token: %s", e.msg)
            raise NotAuthenticatedWithProvider(details=e.msg)
        refreshed = credentials.as_dict()
        refreshed.update(_with_expiry_date(token_data))
        credentials.replace(refreshed)
        logger.info("Google access token refreshed in memory")
    return credentials.access_token


@router.post("/login")
def login(body: LoginBody):
    """Issue a session token for the admin; 30 days with rememberMe, else 24 hours."""
    # Both comparisons always run
    username_ok = _matches(body.username, ADMIN_USERNAME)
    password_ok = _matches(body.password, ADMIN_PASSWORD)
    if not (username_ok and password_ok):
        logger.warning("Failed login attempt for user %r", body.username)
        raise InvalidCredentialsError()

    token = create_jwt(body.username, remember_me=bool(body.rememberMe))
    logger.info('User "%s" logged in successfully', body.username)
    return {"success": True, "token": token, "message": "Login successful"}


@router.get("/verify")
def verify(user: dict = Depends(get_current_user)):
    return {"valid": True, "user": user}


@router.get("/url")
def authorization_url():
    """Google consent URL; the operator opens it once to grant Drive access."""
    return {"authUrl": build_authorization_url()}


_CALLBACK_SUCCESS_HTML = """
<html>
  <body style="font-family: Arial; text-align: center; padding: 50px;">
    <h1 style="color: #22c55e;">Authentication Successful!</h1>
    <p><strong>IMPORTANT:</strong> Check the server logs and copy the token to the environment.</p>
    <ol style="text-align: left; max-width: 500px; margin: 20px auto;">
      <li>Open your hosting provider's environment settings</li>
      <li>Add variable: <strong>GOOGLE_OAUTH_TOKEN</strong></li>
      <li>Paste the token from the logs as the value</li>
      <li>Save and redeploy</li>
    </ol>
    <p>You can close this window.</p>
  </body>
</html>
"""


@router.get("/callback")
def oauth_callback(
    code: str | None = None,
    error: str | None = None,
    credentials: DriveCredentials = Depends(get_drive_credentials),
):
    """
    Handle the redirect from Google. Exchanges the code, replaces the held
    credential and logs it for manual persistence. Replies with HTML, not JSON.
    """
    if error:
        return PlainTextResponse(f"OAuth error: {error}", status_code=400)
    if not code:
        return PlainTextResponse("No authorization code provided", status_code=400)

    try:
        tokens = exchange_code(code)
    except OAuthExchangeError as e:
        logger.error("Error getting tokens: %s", e.msg)
        return PlainTextResponse(
            f"Authentication failed: {e.msg}", status_code=500
        )

    credentials.replace(tokens)
    operator_log.warning(
        "\n========================================\n"
        "COPY THIS TO THE SERVICE ENVIRONMENT:\n"
        "Variable Name: GOOGLE_OAUTH_TOKEN\n"
        "Value:\n%s\n"
        "========================================",
        json.dumps(tokens),
    )
    return HTMLResponse(_CALLBACK_SUCCESS_HTML)


@router.get("/status")
def auth_status(
    user: dict = Depends(get_current_user),
    credentials: DriveCredentials = Depends(get_drive_credentials),
):
    """Whether a Drive credential is held in memory, and when it expires (epoch ms)."""
    return {
        "authenticated": credentials.is_authenticated,
        "expiresAt": credentials.expiry_date,
    }
