# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Cookie-backed sessions established through the Supabase OAuth callback.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    get_identity_store,
    get_live_user,
    get_profile_store,
    get_session_store,
)
from app.auth.models import AccountResponse, ErrorResponse, SuccessResponse
from core.models.account import AuthUser

__all__ = [
    "get_current_user",
    "get_current_user_optional",
    "get_live_user",
    "get_identity_store",
    "get_profile_store",
    "get_session_store",
    "AuthUser",
    "AccountResponse",
    "ErrorResponse",
    "SuccessResponse",
]
