"""
tests/conftest.py -- Shared test fixtures for PawConnect.

This module provides:
  - make_user() / ok_response() / error_response(): inline data builders
  - storage: SessionStorage over an in-memory SQLite LocalStorage
  - http: MagicMock standing in for the requests.Session behind AuthApiClient
  - manager: an initialized SessionManager wired to storage + mocked HTTP
  - web_client: TestClient with follow_redirects=False over the real app

Design: the Auth API is an external service, so tests never hit the network.
AuthApiClient accepts an injected HTTP session; tests pass a MagicMock whose
request() returns canned responses. Everything from the client's status/JSON
handling up through the guards runs for real.

Named shared-memory SQLite URIs (not plain :memory:) are used for the web
client because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import Any, Optional
from unittest.mock import MagicMock

# Keep the login rate limit out of the way of tests that post /login often.
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
# TestClient sends Host: testserver.
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')

import pytest
import requests
from fastapi.testclient import TestClient

from auth.client import AuthApiClient
from auth.models import Role, User
from auth.session import SessionManager
from auth.storage import LocalStorage, SessionStorage

API_URL = "http://auth.test/api"

# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


def make_user(role: Role = Role.NGO_ADMIN, **overrides: Any) -> User:
    fields: dict[str, Any] = {
        "id": f"u-{role.value}",
        "email": f"{role.value}@pawconnect.org.np",
        "name": f"Test {role.value}",
        "role": role,
        "created_at": "2024-01-15T08:30:00.000Z",
    }
    fields.update(overrides)
    return User(**fields)


def user_json(user: User) -> dict[str, Any]:
    """The Auth API's camelCase rendering of user."""
    data = {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "createdAt": user.created_at,
    }
    for key in ("avatar", "phone", "organization"):
        if getattr(user, key) is not None:
            data[key] = getattr(user, key)
    return data


def ok_response(body: Any, status_code: int = 200) -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.ok = True
    resp.json.return_value = body
    return resp


def error_response(status_code: int, message: Optional[str] = None) -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.ok = False
    if message is None:
        resp.json.side_effect = requests.JSONDecodeError("Expecting value", "", 0)
    else:
        resp.json.return_value = {"message": message}
    return resp


def login_body(user: User, token: str = "t1") -> dict[str, Any]:
    return {"token": token, "user": user_json(user)}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def local_storage() -> Generator[LocalStorage, None, None]:
    s = LocalStorage("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def storage(local_storage: LocalStorage) -> SessionStorage:
    return SessionStorage(local_storage)


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http: MagicMock) -> AuthApiClient:
    return AuthApiClient(API_URL, http=http)


@pytest.fixture
def manager(client: AuthApiClient, storage: SessionStorage) -> SessionManager:
    m = SessionManager(client, storage)
    m.init()
    return m


def _patch_lifespan(local_storage: LocalStorage, client: AuthApiClient):
    """Return a lifespan that wires test services into app.state.

    Mirrors web.main.lifespan but uses the isolated storage and the mocked
    HTTP session, so route tests exercise the real SessionManager.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.local_storage = local_storage
        app.state.auth_client = client
        app.state.session = SessionManager(client, SessionStorage(local_storage))
        app.state.session.init()
        yield

    return test_lifespan


@pytest.fixture
def web_client(http: MagicMock) -> Generator[tuple[TestClient, MagicMock], None, None]:
    """Yield (client, http_mock) for web route integration tests.

    follow_redirects=False is essential: tests assert on redirect Location
    headers, which are invisible once the client follows the redirect.
    """
    from asgi import app

    db_url = f"sqlite:///file:test_web_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    local_storage = LocalStorage(db_url)
    client = AuthApiClient(API_URL, http=http)
    app.router.lifespan_context = _patch_lifespan(local_storage, client)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as tc:
        yield tc, http

    local_storage.close()
