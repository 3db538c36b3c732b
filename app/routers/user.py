# =============================================================================
# app/routers/user.py - Account Self-Service Endpoints
# =============================================================================
# Handles actions a signed-in user takes on their own account.
# All endpoints require a session; none accepts a target account.
# =============================================================================

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.auth import AuthUser, get_live_user
from app.auth.dependencies import get_identity_store, get_profile_store, get_session_store
from app.auth.models import ErrorResponse, SuccessResponse
from app.exceptions import DeactivationFailedError
from core.services.deactivation_service import DeactivationService
from core.services.identity_store import IdentityStore
from core.services.profile_store import ProfileStore
from lib.session_store import CookieSessionStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/deactivate-account",
    response_model=SuccessResponse,
    responses={
        401: {"model": ErrorResponse, "description": "No valid session"},
        500: {"model": ErrorResponse, "description": "Deactivation could not be recorded"},
    },
)
async def deactivate_account(
    user: AuthUser = Depends(get_live_user),
    store: CookieSessionStore = Depends(get_session_store),
    identity: IdentityStore = Depends(get_identity_store),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """
    Deactivate the signed-in account.

    Marks the account deactivated, then signs the caller out. Signing in
    again reactivates the account. Calling this on an already-deactivated
    account succeeds.

    Raises:
        401: If not authenticated
        500: If the deactivation couldn't be recorded
    """
    service = DeactivationService(identity, profiles, store)

    try:
        result = service.deactivate(user)
    except DeactivationFailedError:
        raise
    except Exception as e:
        logger.exception(f"Error in deactivate account: {e}")
        raise DeactivationFailedError("Failed to deactivate account")

    response = JSONResponse(SuccessResponse(message=result.message).model_dump())
    return store.apply(response)
