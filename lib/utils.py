# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

from datetime import datetime, timezone
from urllib.parse import quote, urlencode
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        user_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        user_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Time Utilities
# =============================================================================

def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as stored by Supabase, tolerating 'Z'."""
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


# =============================================================================
# Redirect Utilities
# =============================================================================

def safe_redirect_path(value: str | None, default: str = "/") -> str:
    """
    Accept a caller-supplied redirect target only if it is a same-site path.

    Rejects absolute URLs and protocol-relative forms ("//evil.com",
    "/\\evil.com") which browsers treat as off-site.

    Example:
        safe_redirect_path("/saved")            # "/saved"
        safe_redirect_path("https://evil.com")  # "/"
    """
    if not value or not value.startswith("/"):
        return default
    if value.startswith("//") or value.startswith("/\\"):
        return default
    return value


def build_path(path: str, query: dict[str, str] | None = None) -> str:
    """
    Append a query string to a path using %20-style encoding.

    Example:
        build_path("/auth/auth-code-error", {"error": "User cancelled"})
        # "/auth/auth-code-error?error=User%20cancelled"
    """
    if not query:
        return path
    return f"{path}?{urlencode(query, quote_via=quote)}"
