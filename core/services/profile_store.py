# =============================================================================
# core/services/profile_store.py - Profile Table Access
# =============================================================================
# Reads and writes rows in public.profiles, keyed by the auth user id.
# Queries run on the service-role client; callers must pass a user id
# that came from a verified session or a successful code exchange.
# =============================================================================

import logging
from typing import Any, Callable
from uuid import UUID

from supabase import Client

from core.models.profile import Profile
from lib.supabase_client import SupabaseClientError, is_no_rows_error
from lib.utils import normalize_uuid, utcnow

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"


class ProfileStore:
    """
    get/update access to a user's profile row.

    Distinguishes "no profile yet" (get returns None) from a store fault
    (SupabaseClientError). The client is built on first use.
    """

    def __init__(
        self,
        client: Client | None = None,
        *,
        client_factory: Callable[[], Client] | None = None,
    ):
        self._client = client
        self._client_factory = client_factory

    @property
    def client(self) -> Client:
        if self._client is None:
            if self._client_factory is None:
                raise SupabaseClientError(
                    message="No Supabase client configured",
                    code="CLIENT_INIT_FAILED",
                )
            self._client = self._client_factory()
        return self._client

    def get(self, user_id: UUID | str) -> Profile | None:
        """
        Fetch the profile for a user.

        Returns:
            Profile, or None if the user has no profile row

        Raises:
            SupabaseClientError: If the query fails
        """
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                self.client.table(PROFILES_TABLE)
                .select("user_id, onboarding_step, updated_at")
                .eq("user_id", user_id_str)
                .single()
                .execute()
            )
        except Exception as e:
            if is_no_rows_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch profile: {e}",
                code="FETCH_PROFILE_FAILED",
                suggestion="Check that the profiles table is reachable",
                details={"user_id": user_id_str}
            )

        if not response.data:
            return None
        return Profile(**response.data)

    def update(self, user_id: UUID | str, fields: dict[str, Any]) -> None:
        """
        Update columns on a user's profile row.

        Raises:
            SupabaseClientError: If the update fails
        """
        user_id_str = normalize_uuid(user_id)

        try:
            (
                self.client.table(PROFILES_TABLE)
                .update(fields)
                .eq("user_id", user_id_str)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update profile: {e}",
                code="UPDATE_PROFILE_FAILED",
                details={"user_id": user_id_str, "fields": sorted(fields)}
            )

        logger.debug(f"Updated profile for user {user_id_str}: {sorted(fields)}")

    def touch(self, user_id: UUID | str) -> None:
        """Bump updated_at without changing anything else."""
        self.update(user_id, {"updated_at": utcnow().isoformat()})
