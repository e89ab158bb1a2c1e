"""
JWT creation and verification for the admin session.

Tokens are stateless bearer tokens (Authorization header); nothing is stored
server-side, so a token is only invalidated by its expiry. Algorithm: HS256;
secret must be set in config. Lifetime is JWT_SESSION_MAX_AGE, or
JWT_REMEMBER_ME_MAX_AGE when the client asked to be remembered.
"""
from datetime import datetime, timedelta, UTC

from jose import jwt

from config import (
    JWT_ALGORITHM,
    JWT_REMEMBER_ME_MAX_AGE,
    JWT_SECRET,
    JWT_SESSION_MAX_AGE,
)


def token_lifetime(remember_me: bool) -> timedelta:
    return timedelta(
        seconds=JWT_REMEMBER_ME_MAX_AGE if remember_me else JWT_SESSION_MAX_AGE
    )


def create_jwt(username: str, *, remember_me: bool = False) -> str:
    """Build a JWT for the admin identity; exp = now + token_lifetime(remember_me)."""
    now = datetime.now(UTC)
    payload = {
        "username": username,
        "iat": now,
        "exp": now + token_lifetime(remember_me),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_jwt(token: str) -> dict:
    """Decode and verify JWT; raises JWTError if invalid or expired."""
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
