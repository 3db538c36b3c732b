# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides in-memory stores and a TestClient wired to them
# =============================================================================

import os
import time
from uuid import UUID

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from core.models.account import AuthUser
from lib.session_store import AUTH_STORAGE_KEY, encode_cookie_value
from tests.fakes import FakeIdentityStore, FakeProfileStore, InMemorySessionStore, build_session_value

TEST_USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
TEST_EMAIL = "sam@example.com"


def make_access_token(
    user_id: UUID = TEST_USER_ID,
    email: str = TEST_EMAIL,
    user_metadata: dict | None = None,
    expires_in: int = 3600,
) -> str:
    """Mint an HS256 access token the way Supabase would."""
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        "user_metadata": user_metadata or {},
    }
    return jwt.encode(payload, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


def session_cookie_header(access_token: str, refresh_token: str = "refresh-token") -> dict[str, str]:
    """Cookie header carrying a persisted session with `access_token`."""
    value = encode_cookie_value(build_session_value({
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }))
    return {"Cookie": f"{AUTH_STORAGE_KEY}={value}"}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def auth_user():
    """An active, signed-in user."""
    return AuthUser(id=TEST_USER_ID, email=TEST_EMAIL)


@pytest.fixture
def session_store():
    """Empty in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def identity_store(session_store):
    """Fake identity provider bound to the in-memory session store."""
    return FakeIdentityStore(session_store=session_store)


@pytest.fixture
def profile_store():
    """Fake profile table with no rows."""
    return FakeProfileStore()


@pytest.fixture
def client(identity_store, profile_store):
    """
    TestClient with the Supabase-backed stores replaced by fakes.

    The fake identity store is re-bound to each request's real cookie
    store so session writes show up as Set-Cookie headers.
    """
    from app.auth.dependencies import get_identity_store, get_profile_store, get_session_store
    from app.main import app
    from fastapi import Depends

    def override_identity_store(store=Depends(get_session_store)):
        identity_store.session_store = store
        return identity_store

    app.dependency_overrides[get_identity_store] = override_identity_store
    app.dependency_overrides[get_profile_store] = lambda: profile_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def live_client():
    """
    TestClient over the real dependency graph.

    Nothing is overridden: tests patch the Supabase clients they need.
    """
    from app.main import app
    from lib.supabase_client import SupabaseClient

    app.dependency_overrides.clear()
    SupabaseClient.reset()

    with TestClient(app) as test_client:
        yield test_client

    SupabaseClient.reset()
