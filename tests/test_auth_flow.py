# =============================================================================
# tests/test_auth_flow.py - Sign-In Flow Tests
# =============================================================================
# Drives /auth/signin and /auth/callback through the real Supabase client
# wiring (no dependency overrides). Only the HTTP layer of the auth client
# is stubbed, so the PKCE verifier really travels through the cookie jar.
# =============================================================================

from unittest.mock import MagicMock, patch
from urllib.parse import urlsplit

import pytest

from app.config import settings
from lib.session_store import AUTH_STORAGE_KEY, decode_cookie_value
from lib.supabase_client import SupabaseClient, SupabaseClientError
from tests.conftest import make_access_token

VERIFIER_COOKIE = f"{AUTH_STORAGE_KEY}-code-verifier"


def _cookie_value(response, name: str) -> str | None:
    """Value of the named cookie from the response's Set-Cookie headers."""
    for header in response.headers.get_list("set-cookie"):
        cookie_name, _, rest = header.partition("=")
        if cookie_name == name:
            return rest.split(";", 1)[0]
    return None


@pytest.fixture
def api_keys(monkeypatch):
    """JWT-shaped project keys, as supabase-py expects."""
    monkeypatch.setattr(settings, "SUPABASE_ANON_KEY", make_access_token())
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_KEY", make_access_token())


@pytest.fixture
def session_clients():
    """
    Real session-bound clients with the auth HTTP layer stubbed.

    Yields the list of clients created, in order.
    """
    created = []
    build = SupabaseClient.for_session_store

    def session_client(store):
        client = build(store)
        client.auth._request = MagicMock(return_value=MagicMock(user=None, session=None))
        created.append(client)
        return client

    with patch.object(SupabaseClient, "for_session_store", side_effect=session_client):
        yield created


# =============================================================================
# PKCE Round Trip
# =============================================================================

class TestPkceRoundTrip:
    """The verifier written at sign-in is sent with the code exchange."""

    def test_signin_redirects_to_provider(self, live_client, api_keys, session_clients):
        response = live_client.get("/auth/signin?provider=google&next=/saved", follow_redirects=False)

        location = response.headers["location"]
        assert response.status_code == 307
        assert location.startswith(f"{settings.SUPABASE_URL}/auth/v1/authorize")
        assert "provider=google" in location
        assert "code_challenge=" in location
        assert "auth%2Fcallback" in location

    def test_signin_stores_verifier_cookie(self, live_client, api_keys, session_clients):
        response = live_client.get("/auth/signin?provider=google", follow_redirects=False)

        stored = _cookie_value(response, VERIFIER_COOKIE)
        assert stored is not None
        assert decode_cookie_value(stored)

    def test_callback_sends_stored_verifier(self, live_client, api_keys, session_clients):
        signin = live_client.get("/auth/signin?provider=google&next=/saved", follow_redirects=False)
        stored = _cookie_value(signin, VERIFIER_COOKIE)
        live_client.cookies.clear()

        callback = live_client.get(
            "/auth/callback?code=abc&next=/saved",
            headers={"Cookie": f"{VERIFIER_COOKIE}={stored}"},
            follow_redirects=False,
        )

        body = session_clients[-1].auth._request.call_args.kwargs["body"]
        assert body["auth_code"] == "abc"
        assert body["code_verifier"] == decode_cookie_value(stored)
        # No user in the stubbed response, so the browser goes to `next`
        assert urlsplit(callback.headers["location"]).path == "/saved"

    def test_callback_clears_verifier_cookie(self, live_client, api_keys, session_clients):
        signin = live_client.get("/auth/signin?provider=google", follow_redirects=False)
        stored = _cookie_value(signin, VERIFIER_COOKIE)
        live_client.cookies.clear()

        callback = live_client.get(
            "/auth/callback?code=abc",
            headers={"Cookie": f"{VERIFIER_COOKIE}={stored}"},
            follow_redirects=False,
        )

        assert _cookie_value(callback, VERIFIER_COOKIE) == '""'


# =============================================================================
# Client Failures
# =============================================================================

class TestClientFailure:
    """A Supabase client that can't be built still yields a redirect."""

    @pytest.fixture
    def broken_clients(self):
        failure = SupabaseClientError(
            message="Failed to create session client",
            code="CLIENT_INIT_FAILED",
        )
        with patch.object(SupabaseClient, "for_session_store", side_effect=failure), \
                patch.object(SupabaseClient, "get_client", side_effect=failure):
            yield

    @pytest.mark.parametrize("query", [
        "?code=abc",
        "?error=access_denied&error_description=Denied",
        "",
    ])
    def test_callback_redirects_to_error_page(self, live_client, broken_clients, query):
        response = live_client.get(f"/auth/callback{query}", follow_redirects=False)

        assert response.status_code == 307
        assert urlsplit(response.headers["location"]).path == "/auth/auth-code-error"

    def test_signin_redirects_to_error_page(self, live_client, broken_clients):
        response = live_client.get("/auth/signin?provider=google", follow_redirects=False)

        assert response.status_code == 307
        assert urlsplit(response.headers["location"]).path == "/auth/auth-code-error"
        assert _cookie_value(response, VERIFIER_COOKIE) is None
