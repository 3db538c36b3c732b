# =============================================================================
# core/services/session_exchange.py - OAuth Callback Handling
# =============================================================================
# Turns an identity-provider redirect into a redirect decision:
#
#   error present     -> auth error page (with the provider's description)
#   neither present   -> auth error page
#   code present      -> exchange once -> read profile -> resolve destination
#
# Per callback: at most one exchange call, one session write (done by the
# identity store through the session cookies), one profile read. Nothing is
# retried; authorization codes are single-use.
# =============================================================================

import logging

from app.config import settings
from core.models.account import Account, AuthUser
from core.models.session import CallbackError, CallbackParams, CallbackResult
from core.services.identity_store import IdentityStore
from core.services.onboarding_resolver import resolve_onboarding_destination
from core.services.profile_store import ProfileStore
from lib.supabase_client import SupabaseClientError
from lib.utils import safe_redirect_path

logger = logging.getLogger(__name__)


class SessionExchangeService:
    """
    Handles the OAuth authorization-code callback.

    Every outcome, including failures, is a CallbackResult; nothing here
    raises to the caller.
    """

    def __init__(self, identity: IdentityStore, profiles: ProfileStore):
        self.identity = identity
        self.profiles = profiles

    def handle_callback(self, params: CallbackParams) -> CallbackResult:
        """
        Decide where the browser goes after the provider redirect.

        Args:
            params: Query parameters from the redirect

        Returns:
            CallbackResult with the relative path and query to redirect to
        """
        next_path = safe_redirect_path(params.next)

        if params.error:
            logger.error(f"OAuth error: {params.error} {params.error_description or ''}".rstrip())
            return self._error_result(
                CallbackError.PROVIDER_ERROR,
                detail=params.error_description or params.error,
            )

        if not params.code:
            logger.warning("OAuth callback without code or error")
            return self._error_result(CallbackError.MISSING_CREDENTIALS)

        try:
            user = self.identity.exchange_code(params.code)
        except SupabaseClientError as e:
            # Internal detail stays in the logs
            logger.error(f"Code exchange error: {e}")
            return self._error_result(CallbackError.EXCHANGE_FAILED)

        if user is None:
            logger.warning("Code exchange returned no user, sending to next path")
            return CallbackResult(path=next_path, session_created=True)

        self._reactivate_if_needed(user)

        try:
            profile = self.profiles.get(user.id)
        except SupabaseClientError as e:
            logger.error(f"Profile lookup failed for {user.id}: {e}")
            return CallbackResult(
                path=next_path,
                error=CallbackError.PROFILE_LOOKUP_FAILED,
                user_id=user.id,
                session_created=True,
            )

        step = profile.onboarding_step if profile else None
        destination = resolve_onboarding_destination(
            step,
            landing_path=settings.LANDING_PATH,
            onboarding_path=settings.ONBOARDING_ENTRY_PATH,
        )
        logger.info(f"Signed in {user.id} (onboarding_step={step.value if step else None}) -> {destination}")

        return CallbackResult(path=destination, user_id=user.id, session_created=True)

    def _reactivate_if_needed(self, user: AuthUser) -> None:
        """Clear the deactivated flag on sign-in; failures are logged only."""
        if not settings.REACTIVATE_ON_LOGIN:
            return
        if not Account.from_auth_user(user).is_deactivated:
            return

        try:
            self.identity.reactivate(user.id)
        except SupabaseClientError as e:
            logger.warning(f"Could not reactivate account {user.id}: {e}")

    @staticmethod
    def _error_result(error: CallbackError, detail: str | None = None) -> CallbackResult:
        return CallbackResult(
            path=settings.AUTH_ERROR_PATH,
            query={"error": detail} if detail else {},
            error=error,
        )
