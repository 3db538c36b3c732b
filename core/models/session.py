# =============================================================================
# core/models/session.py - Session Exchange Schemas
# =============================================================================
# These models describe one pass through the OAuth callback:
# - CallbackParams: Query parameters the identity provider redirected with
# - CallbackError: Why a callback didn't end at the normal destination
# - CallbackResult: Where the browser goes next
#
# Every callback ends in a redirect. Errors are recorded on the result for
# logging/tests; they never surface to the browser as a fault.
# =============================================================================

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class CallbackError(str, Enum):
    """
    Ways a callback can fail.

    - missing_credentials: neither `code` nor `error` was present
    - provider_error: the identity provider redirected with an error
    - exchange_failed: the code couldn't be exchanged for a session
    - profile_lookup_failed: signed in, but the profile read faulted
    """
    MISSING_CREDENTIALS = "missing_credentials"
    PROVIDER_ERROR = "provider_error"
    EXCHANGE_FAILED = "exchange_failed"
    PROFILE_LOOKUP_FAILED = "profile_lookup_failed"


class CallbackParams(BaseModel):
    """
    Query parameters of the provider redirect.

    Example:
        /auth/callback?code=3f2a...&next=/saved
        /auth/callback?error=access_denied&error_description=User%20cancelled
    """
    code: str | None = None
    next: str = Field(default="/", description="Relative path to return to")
    error: str | None = None
    error_description: str | None = None


class CallbackResult(BaseModel):
    """Redirect decision for one callback."""
    path: str = Field(..., description="Relative redirect path")
    query: dict[str, str] = Field(default_factory=dict)
    error: CallbackError | None = None
    user_id: UUID | None = None
    session_created: bool = False


class DeactivationResult(BaseModel):
    """
    Outcome of a successful deactivation.

    profile_touched/signed_out record the best-effort steps; neither
    being False makes the deactivation itself fail.
    """
    user_id: UUID
    already_deactivated: bool = False
    profile_touched: bool = True
    signed_out: bool = True
    message: str = "Account deactivated successfully. You can reactivate by logging in again."
