"""
Shared fixtures. Required settings are put in the environment before the app
modules are imported, since config validates them at import time.
"""
import json
import os
import time

os.environ["ENV"] = "test"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "s3cret-pass"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["GOOGLE_CLIENT_ID"] = "client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_SECRET"] = "client-secret"
os.environ["GOOGLE_REDIRECT_URI"] = "http://localhost:5000/api/auth/callback"
os.environ.pop("GOOGLE_OAUTH_TOKEN", None)

import pytest
import requests
from fastapi.testclient import TestClient

from credentials import DriveCredentials, get_drive_credentials
from main import app
from security import create_jwt


def _response(status_code: int, body=b"", url: str = "https://example.test/") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status_code
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode()
    elif isinstance(body, str):
        body = body.encode()
    resp._content = body
    resp.encoding = "utf-8"
    resp.url = url
    return resp


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects with a canned body."""
    return _response


@pytest.fixture
def drive_credentials():
    """A held Drive credential that is valid for another hour."""
    return DriveCredentials({
        "access_token": "ya29.test-access",
        "refresh_token": "1//test-refresh",
        "expiry_date": int((time.time() + 3600) * 1000),
        "token_type": "Bearer",
    })


@pytest.fixture
def client(drive_credentials):
    app.dependency_overrides[get_drive_credentials] = lambda: drive_credentials
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_jwt('admin')}"}
