# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# - GET  /auth/signin          Start an OAuth sign-in (PKCE)
# - GET  /auth/callback        OAuth redirect target (code -> session)
# - POST /api/v1/auth/signout  End the current session
# - GET  /api/v1/auth/me       Signed-in account and onboarding progress
#
# Sign-in and callback live outside /api/v1 because the callback is the URL
# registered with the identity provider, and both must share one cookie
# jar: the PKCE verifier written at sign-in is read back at the callback.
# Both only ever answer with a redirect.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.auth.dependencies import (
    get_current_user_optional,
    get_identity_store,
    get_live_user,
    get_profile_store,
    get_session_store,
)
from app.auth.models import AccountResponse, ErrorResponse, SuccessResponse
from app.config import settings
from core.models.account import Account, AuthUser
from core.models.profile import OnboardingStep
from core.models.session import CallbackParams
from core.services.identity_store import IdentityStore
from core.services.onboarding_resolver import resolve_onboarding_destination
from core.services.profile_store import ProfileStore
from core.services.session_exchange import SessionExchangeService
from lib.session_store import CookieSessionStore, revoke_session
from lib.supabase_client import SupabaseClientError
from lib.utils import build_path, safe_redirect_path

logger = logging.getLogger(__name__)

callback_router = APIRouter()
router = APIRouter()


def _absolute_url(request: Request, path: str) -> str:
    """Resolve a relative redirect path against this request's origin."""
    return str(request.base_url).rstrip("/") + path


# =============================================================================
# OAuth Sign-In
# =============================================================================

@callback_router.get("/signin", response_class=RedirectResponse)
async def auth_signin(
    request: Request,
    provider: str = Query(..., min_length=1, description="OAuth provider, e.g. google"),
    next_path: str = Query(default="/", alias="next", description="Relative path to return to"),
    store: CookieSessionStore = Depends(get_session_store),
    identity: IdentityStore = Depends(get_identity_store),
) -> RedirectResponse:
    """
    Send the browser to the provider's consent screen.

    The provider redirects back to /auth/callback carrying `next`. A
    sign-in that can't be started goes to the auth error page.
    """
    redirect_to = request.url_for("auth_callback").include_query_params(
        next=safe_redirect_path(next_path)
    )

    try:
        url = identity.start_oauth(provider, str(redirect_to))
    except SupabaseClientError as e:
        logger.error(f"Could not start OAuth sign-in: {e}")
        return RedirectResponse(_absolute_url(request, settings.AUTH_ERROR_PATH))

    logger.info(f"Starting {provider} sign-in")
    return store.apply(RedirectResponse(url))


# =============================================================================
# OAuth Callback
# =============================================================================

@callback_router.get("/callback", response_class=RedirectResponse)
async def auth_callback(
    request: Request,
    code: str | None = Query(default=None, description="Single-use authorization code"),
    next_path: str = Query(default="/", alias="next", description="Relative path to return to"),
    error: str | None = Query(default=None, description="Provider error code"),
    error_description: str | None = Query(default=None, description="Provider error message"),
    store: CookieSessionStore = Depends(get_session_store),
    identity: IdentityStore = Depends(get_identity_store),
    profiles: ProfileStore = Depends(get_profile_store),
) -> RedirectResponse:
    """
    Exchange an authorization code for a session and redirect.

    Destinations:
    - onboarding complete -> landing page
    - onboarding not complete (or no profile) -> onboarding entry
    - profile lookup failed -> `next`
    - provider error / no code / failed exchange -> auth error page
    """
    params = CallbackParams(
        code=code,
        next=next_path,
        error=error,
        error_description=error_description,
    )
    result = SessionExchangeService(identity, profiles).handle_callback(params)

    response = RedirectResponse(_absolute_url(request, build_path(result.path, result.query)))
    return store.apply(response)


# =============================================================================
# Session Endpoints
# =============================================================================

@router.post("/signout", response_model=SuccessResponse)
async def sign_out(
    user: AuthUser | None = Depends(get_current_user_optional),
    store: CookieSessionStore = Depends(get_session_store),
    identity: IdentityStore = Depends(get_identity_store),
):
    """
    End the current session.

    Always clears the session cookies, even if the provider-side
    revocation fails or there was no valid session to begin with.
    """
    try:
        identity.sign_out()
    except SupabaseClientError as e:
        logger.warning(f"Provider sign-out failed: {e}")
    revoke_session(store)

    if user:
        logger.info(f"Signed out {user.id}")

    response = JSONResponse(SuccessResponse(message="Signed out").model_dump())
    return store.apply(response)


@router.get(
    "/me",
    response_model=AccountResponse,
    responses={401: {"model": ErrorResponse}},
)
async def get_current_account(
    user: AuthUser = Depends(get_live_user),
    store: CookieSessionStore = Depends(get_session_store),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """
    Get the signed-in account with its onboarding progress.

    Account status comes from the provider's current metadata, so a
    reactivation at sign-in shows up immediately.

    Raises:
        401: If not authenticated
    """
    account = Account.from_auth_user(user)

    try:
        profile = profiles.get(user.id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch profile: {e}")
        profile = None

    # No profile row (or it couldn't be read) counts as not started
    step = profile.onboarding_step if profile else OnboardingStep.NOT_STARTED

    body = AccountResponse(
        id=account.id,
        email=account.email,
        status=account.status,
        deactivated_at=account.deactivated_at,
        onboarding_step=step,
        onboarding_complete=step == OnboardingStep.COMPLETE,
        next_path=resolve_onboarding_destination(
            step,
            landing_path=settings.LANDING_PATH,
            onboarding_path=settings.ONBOARDING_ENTRY_PATH,
        ),
    )
    # A refreshed session rides back on this response
    return store.apply(JSONResponse(body.model_dump(mode="json")))
