"""
Process-wide Google Drive delegated credential.

The credential is sourced once through the consent flow, then held in memory
for the life of the process. It is never written anywhere by this service:
the operator copies it from the log into GOOGLE_OAUTH_TOKEN.

Routes get the holder through the get_drive_credentials dependency, so tests
can swap in their own instance with app.dependency_overrides.
"""
import json
import logging
import time

from config import GOOGLE_OAUTH_TOKEN

logger = logging.getLogger(__name__)


class DriveCredentials:
    """
    Holder for {access_token, refresh_token, expiry_date, scope, token_type}.

    expiry_date is epoch milliseconds, the format Google client libraries use,
    so a value pasted from the log round-trips unchanged. Writes replace the
    whole credential; the last write wins.
    """

    def __init__(self, tokens: dict | None = None):
        self._tokens: dict = dict(tokens or {})

    @classmethod
    def from_json(cls, raw: str | None) -> "DriveCredentials":
        """Build from a JSON string; invalid or missing JSON yields an empty holder."""
        if not raw:
            logger.warning("GOOGLE_OAUTH_TOKEN not set in environment")
            return cls()
        try:
            tokens = json.loads(raw)
        except ValueError:
            logger.error("Failed to parse GOOGLE_OAUTH_TOKEN; starting without Drive access")
            return cls()
        if not isinstance(tokens, dict):
            logger.error("GOOGLE_OAUTH_TOKEN is not a JSON object; starting without Drive access")
            return cls()
        logger.info("OAuth token loaded from environment variable")
        return cls(tokens)

    @property
    def access_token(self) -> str | None:
        return self._tokens.get("access_token") or None

    @property
    def refresh_token(self) -> str | None:
        return self._tokens.get("refresh_token") or None

    @property
    def expiry_date(self) -> int | None:
        return self._tokens.get("expiry_date")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def expires_within(self, seconds: int) -> bool:
        """True when expiry_date is known and falls within `seconds` from now."""
        if self.expiry_date is None:
            return False
        try:
            expiry_ms = int(self.expiry_date)
        except (TypeError, ValueError):
            return False
        return time.time() * 1000 >= expiry_ms - seconds * 1000

    def replace(self, tokens: dict) -> None:
        self._tokens = dict(tokens)

    def as_dict(self) -> dict:
        return dict(self._tokens)


_credentials = DriveCredentials.from_json(GOOGLE_OAUTH_TOKEN)


def get_drive_credentials() -> DriveCredentials:
    """FastAPI dependency: the process-wide credential holder."""
    return _credentials
