"""
Error taxonomy for the relay. Every error renders as a flat JSON body
{error, details?, ...} via the RelayError handler registered in main.
"""
from typing import Any

from fastapi import HTTPException, status


class RelayError(HTTPException):
    """Base class: carries the full response body in `detail`."""

    def __init__(
        self,
        status_code: int,
        error: str,
        details: Any = None,
        **extra: Any,
    ):
        self.error = error
        self.details = details
        body: dict[str, Any] = dict(extra)
        body["error"] = error
        if details is not None:
            body["details"] = details
        super().__init__(status_code=status_code, detail=body)


class AuthError(RelayError):
    """Bad login, or a missing/invalid/expired session token."""


class MissingTokenError(AuthError):
    def __init__(self, error: str = "Access denied. Please login."):
        super().__init__(status.HTTP_401_UNAUTHORIZED, error)


class InvalidTokenError(AuthError):
    def __init__(self, error: str = "Invalid or expired token"):
        super().__init__(status.HTTP_403_FORBIDDEN, error)


class InvalidCredentialsError(AuthError):
    def __init__(self, error: str = "Invalid username or password"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, error)


class ValidationError(RelayError):
    """Malformed client input: missing files, URL or content."""

    def __init__(self, error: str, details: Any = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, error, details)


class NotAuthenticatedWithProvider(RelayError):
    """No usable Google Drive credential is held by the process."""

    def __init__(
        self,
        message: str = "Please authenticate with Google Drive first",
        details: Any = None,
    ):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            "Not authenticated with Google Drive",
            details,
            message=message,
        )


class UpstreamError(RelayError):
    """Google Drive or a webhook call failed or returned non-2xx."""

    def __init__(self, error: str, details: Any = None, **extra: Any):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, error, details, **extra)


class WebhookFailedError(UpstreamError):
    def __init__(self, details: Any = None):
        super().__init__("Failed to send to n8n", details, success=False)
