# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Service-role and session-bound Supabase clients
# - session_store.py: Cookie-backed session store and Supabase storage bridge
# - utils.py: Shared utilities (UUIDs, timestamps, redirect paths)
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.session_store import (
    AUTH_STORAGE_KEY,
    CookieOptions,
    CookieSessionStore,
    SessionStorageBridge,
    SessionStore,
)
from lib.utils import normalize_uuid, safe_redirect_path

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Session store
    "AUTH_STORAGE_KEY",
    "CookieOptions",
    "CookieSessionStore",
    "SessionStorageBridge",
    "SessionStore",
    # Utils
    "normalize_uuid",
    "safe_redirect_path",
]
