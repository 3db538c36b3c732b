# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides the two kinds of Supabase clients the service uses:
# - A service-role singleton for table access and admin operations
# - A per-request client bound to the caller's session cookies, used for
#   everything that acts *as* the signed-in user (code exchange, metadata
#   updates, sign-out)
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   admin = SupabaseClient.get_client()
#   user_client = SupabaseClient.for_session_store(store)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import Client, ClientOptions, create_client

from app.config import settings
from lib.session_store import SessionStorageBridge, SessionStore

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST error code for `.single()` queries that matched no rows
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def is_no_rows_error(error: Exception) -> bool:
    """Check whether a PostgREST error means 'no matching row'."""
    return getattr(error, "code", None) == NO_ROWS_CODE or NO_ROWS_CODE in str(error)


class SupabaseClient:
    """
    Factory for Supabase clients.

    The service-role client is a singleton shared across the application.
    Session-bound clients are cheap and created once per request.
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton service-role Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Only used for server-side reads/writes keyed by a verified user id.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def for_session_store(cls, store: SessionStore) -> Client:
        """
        Create a client whose auth session lives in the request's cookies.

        Uses the anon key and PKCE flow; the code verifier and the session
        are both read from and written to `store`.

        Raises:
            SupabaseClientError: If client creation fails
        """
        options = ClientOptions(
            storage=SessionStorageBridge(store),
            flow_type="pkce",
            auto_refresh_token=False,
            persist_session=True,
        )
        try:
            return create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_ANON_KEY,
                options=options,
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create session client: {e}",
                code="CLIENT_INIT_FAILED",
                suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
            )

    @classmethod
    def reset(cls) -> None:
        """Drop the cached singleton (used by tests)."""
        cls._instance = None
