# =============================================================================
# core/services/deactivation_service.py - Self-Service Account Deactivation
# =============================================================================
# Deactivation touches two independent stores with no shared transaction,
# so it runs as a short saga:
#
#   A. identity metadata: is_deactivated=true, deactivated_at   (required)
#   B. profiles.updated_at                                       (best-effort)
#   C. sign out the caller                                       (always, after A)
#
# A failing aborts everything. B failing is logged and ignored. C never
# fails the request: the session cookies are cleared even when the
# provider sign-out errors.
# =============================================================================

import logging

from app.exceptions import DeactivationFailedError
from core.models.account import Account, AuthUser
from core.models.session import DeactivationResult
from core.services.identity_store import IdentityStore
from core.services.profile_store import ProfileStore
from lib.session_store import SessionStore, revoke_session
from lib.supabase_client import SupabaseClientError
from lib.utils import utcnow

logger = logging.getLogger(__name__)


class DeactivationService:
    """
    Deactivates the caller's own account.

    Takes no target-account parameter: the account is always the one
    behind the caller's session.
    """

    def __init__(
        self,
        identity: IdentityStore,
        profiles: ProfileStore,
        session_store: SessionStore,
    ):
        self.identity = identity
        self.profiles = profiles
        self.session_store = session_store

    def deactivate(self, user: AuthUser) -> DeactivationResult:
        """
        Deactivate the signed-in user's account and end their session.

        Repeat calls succeed and keep the original deactivated_at.

        Args:
            user: The verified caller

        Returns:
            DeactivationResult describing which best-effort steps succeeded

        Raises:
            DeactivationFailedError: If the identity metadata write fails
        """
        account = Account.from_auth_user(user)
        already_deactivated = account.is_deactivated
        deactivated_at = account.deactivated_at or utcnow()

        # Step A: authoritative write
        try:
            self.identity.update_metadata({
                "is_deactivated": True,
                "deactivated_at": deactivated_at.isoformat(),
            })
        except SupabaseClientError as e:
            logger.error(f"Error deactivating account {user.id}: {e}")
            raise DeactivationFailedError()

        # Step B: secondary marker
        profile_touched = True
        try:
            self.profiles.touch(user.id)
        except SupabaseClientError as e:
            profile_touched = False
            logger.warning(f"Error updating profile for deactivated account {user.id}: {e}")

        # Step C: end the session
        signed_out = self._sign_out(user)

        logger.info(
            f"Deactivated account {user.id} "
            f"(already_deactivated={already_deactivated}, profile_touched={profile_touched}, signed_out={signed_out})"
        )
        return DeactivationResult(
            user_id=user.id,
            already_deactivated=already_deactivated,
            profile_touched=profile_touched,
            signed_out=signed_out,
        )

    def _sign_out(self, user: AuthUser) -> bool:
        signed_out = True
        try:
            self.identity.sign_out()
        except SupabaseClientError as e:
            signed_out = False
            logger.warning(f"Provider sign-out failed for {user.id}: {e}")
        # Cookies go regardless of what the provider said
        revoke_session(self.session_store)
        return signed_out
