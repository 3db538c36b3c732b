# =============================================================================
# core/services/identity_store.py - Identity Provider Access
# =============================================================================
# Wraps the Supabase auth API for one request:
# - start_oauth: begin a PKCE sign-in (verifier persisted to cookies)
# - exchange_code: PKCE authorization code -> session (persisted to cookies)
# - refresh_session: rotate an expired session using its refresh token
# - get_user: the user behind the current session cookie
# - update_metadata: merge keys into the signed-in user's metadata
# - sign_out: revoke the session and clear its cookies
# - reactivate: clear the deactivated flag via the admin API
#
# Clients are built on first use, so a misconfigured client surfaces as a
# SupabaseClientError from the call that needed it. Every Supabase fault is
# re-raised as SupabaseClientError so callers only handle one error type.
# =============================================================================

import logging
from typing import Any, Callable
from uuid import UUID

from supabase import Client

from core.models.account import AuthUser
from lib.supabase_client import SupabaseClientError
from lib.utils import normalize_uuid, utcnow

logger = logging.getLogger(__name__)


def _to_auth_user(user: Any) -> AuthUser | None:
    """Convert a supabase_auth User into our AuthUser."""
    if user is None:
        return None
    return AuthUser(
        id=user.id,
        email=user.email,
        user_metadata=user.user_metadata or {},
    )


class IdentityStore:
    """
    Identity record store bound to the caller's session.

    Args:
        client: Session-bound client (see SupabaseClient.for_session_store)
        admin_client: Service-role client, only needed for reactivate()
        client_factory: Builds `client` on first use when not given
        admin_client_factory: Builds `admin_client` on first use when not given
    """

    def __init__(
        self,
        client: Client | None = None,
        admin_client: Client | None = None,
        *,
        client_factory: Callable[[], Client] | None = None,
        admin_client_factory: Callable[[], Client] | None = None,
    ):
        self._client = client
        self._admin_client = admin_client
        self._client_factory = client_factory
        self._admin_client_factory = admin_client_factory
        # Latest user the provider returned during this request
        self._session_user: AuthUser | None = None

    @property
    def client(self) -> Client:
        if self._client is None:
            if self._client_factory is None:
                raise SupabaseClientError(
                    message="No session client configured",
                    code="CLIENT_INIT_FAILED",
                )
            self._client = self._client_factory()
        return self._client

    @property
    def admin_client(self) -> Client:
        if self._admin_client is None:
            if self._admin_client_factory is None:
                raise SupabaseClientError(
                    message="This operation requires a service-role client",
                    code="CLIENT_INIT_FAILED",
                )
            self._admin_client = self._admin_client_factory()
        return self._admin_client

    def start_oauth(self, provider: str, redirect_to: str) -> str:
        """
        Begin an OAuth sign-in.

        The PKCE code verifier is written to the session cookies, where
        exchange_code() reads it back when the provider redirects.

        Returns:
            The provider authorization URL to send the browser to

        Raises:
            SupabaseClientError: If the sign-in can't be started
        """
        try:
            response = self.client.auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": redirect_to},
            })
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to start {provider} sign-in: {e}",
                code="OAUTH_START_FAILED",
                details={"provider": provider},
            )
        return response.url

    def exchange_code(self, code: str) -> AuthUser | None:
        """
        Exchange an authorization code for a session.

        Called at most once per code: codes are single-use, so a failed
        exchange is never retried.

        Returns:
            The signed-in user, or None if the provider returned no user

        Raises:
            SupabaseClientError: If the exchange fails
        """
        try:
            response = self.client.auth.exchange_code_for_session({"auth_code": code})
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to exchange authorization code: {e}",
                code="CODE_EXCHANGE_FAILED",
                suggestion="Restart the sign-in flow; authorization codes can only be used once",
            )
        self._session_user = _to_auth_user(response.user)
        return self._session_user

    def refresh_session(self, refresh_token: str) -> AuthUser | None:
        """
        Rotate the session with its refresh token.

        The new session is persisted to the session cookies. Refresh tokens
        are single-use.

        Returns:
            The user the refreshed session belongs to

        Raises:
            SupabaseClientError: If the refresh fails
        """
        try:
            response = self.client.auth.refresh_session(refresh_token)
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to refresh session: {e}",
                code="REFRESH_SESSION_FAILED",
                suggestion="Sign in again to start a new session",
            )
        self._session_user = _to_auth_user(response.user)
        return self._session_user

    def get_user(self) -> AuthUser | None:
        """
        Look up the user behind the current session cookie.

        Metadata is read from the provider, not from token claims. A user
        already returned by an exchange or refresh in this request is
        reused, since the rotated session isn't readable until the next one.

        Raises:
            SupabaseClientError: If the lookup fails
        """
        if self._session_user is not None:
            return self._session_user

        try:
            response = self.client.auth.get_user()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch user: {e}",
                code="FETCH_USER_FAILED",
            )
        return _to_auth_user(response.user) if response else None

    def update_metadata(self, fields: dict[str, Any]) -> AuthUser | None:
        """
        Merge `fields` into the signed-in user's metadata.

        Raises:
            SupabaseClientError: If the update fails
        """
        try:
            response = self.client.auth.update_user({"data": fields})
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update user metadata: {e}",
                code="UPDATE_METADATA_FAILED",
                details={"fields": sorted(fields)},
            )
        return _to_auth_user(response.user)

    def sign_out(self) -> None:
        """
        Revoke the current session and clear its cookies.

        Revocation is best-effort on the provider side: outstanding access
        tokens stay valid until they expire.

        Raises:
            SupabaseClientError: If sign-out fails
        """
        try:
            self.client.auth.sign_out()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to sign out: {e}",
                code="SIGN_OUT_FAILED",
            )

    def reactivate(self, user_id: UUID | str) -> None:
        """
        Clear the deactivated flag on an account.

        Runs on the admin API because the session that just signed in
        can't be read back from the cookie jar within the same request.

        Raises:
            SupabaseClientError: If no admin client is available or the update fails
        """
        user_id_str = normalize_uuid(user_id)

        try:
            self.admin_client.auth.admin.update_user_by_id(
                user_id_str,
                {
                    "user_metadata": {
                        "is_deactivated": False,
                        "deactivated_at": None,
                        "reactivated_at": utcnow().isoformat(),
                    }
                },
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to reactivate account: {e}",
                code="REACTIVATE_FAILED",
                details={"user_id": user_id_str},
            )

        logger.info(f"Reactivated account {user_id_str}")
