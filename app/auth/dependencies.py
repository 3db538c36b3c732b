# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for sessions and the stores behind them.
#
# The session lives in cookies written by the OAuth callback. Its access
# token is verified locally, supporting both:
# - ES256/RS256 (Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret), only when SUPABASE_JWT_SECRET is set
# Tokens with no trusted key are rejected. An expired access token is
# rotated with the session's refresh token.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
import time
from typing import Optional
from uuid import UUID

import httpx
from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.exceptions import SessionExpiredError, UnauthorizedError
from core.models.account import AuthUser
from core.services.identity_store import IdentityStore
from core.services.profile_store import ProfileStore
from lib.session_store import CookieSessionStore, read_session
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour

# Supabase JWT signing key algorithms
ASYMMETRIC_ALGORITHMS = ("ES256", "RS256")


# =============================================================================
# Store Dependencies
# =============================================================================

def get_session_store(request: Request) -> CookieSessionStore:
    """
    Session store for this request.

    FastAPI caches dependencies per request, so every dependency and the
    route itself share one store; the route flushes it onto its response.
    """
    return CookieSessionStore(request)


def get_identity_store(
    store: CookieSessionStore = Depends(get_session_store),
) -> IdentityStore:
    """
    Identity store bound to this request's session cookies.

    Clients are built on first use so a client failure reaches the
    route as a SupabaseClientError instead of failing dependency
    resolution.
    """
    return IdentityStore(
        client_factory=lambda: SupabaseClient.for_session_store(store),
        admin_client_factory=SupabaseClient.get_client,
    )


def get_profile_store() -> ProfileStore:
    """Profile store on the shared service-role client."""
    return ProfileStore(client_factory=SupabaseClient.get_client)


# =============================================================================
# Token Verification
# =============================================================================

def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    # Return cached if valid
    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        response = httpx.get(settings.jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {settings.jwks_url}")
        return _jwks_cache
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Stale keys beat no keys
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _get_signing_key(token: str) -> tuple[str | dict, str]:
    """
    Get the appropriate signing key for a token.

    Returns:
        Tuple of (key, algorithm) to use for verification

    Raises:
        UnauthorizedError: If no trusted key exists for the token
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise UnauthorizedError("malformed token")

    alg = unverified_header.get("alg")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            logger.warning("Rejecting HS256 token: SUPABASE_JWT_SECRET is not configured")
            raise UnauthorizedError("invalid token")
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if alg not in ASYMMETRIC_ALGORITHMS:
        logger.warning(f"Rejecting token signed with unsupported alg={alg}")
        raise UnauthorizedError("invalid token")

    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"No signing key found for alg={alg}, kid={kid}")
    raise UnauthorizedError("unknown signing key")


def verify_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and extract the user.

    Raises:
        SessionExpiredError: If the token has expired
        UnauthorizedError: If the token is invalid or has no subject
    """
    signing_key, algorithm = _get_signing_key(token)

    try:
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated"
        )
    except ExpiredSignatureError:
        logger.info("Session access token has expired")
        raise SessionExpiredError()
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise UnauthorizedError("invalid token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise UnauthorizedError("missing subject")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {user_id}")
        raise UnauthorizedError("malformed subject")

    return AuthUser(
        id=user_uuid,
        email=payload.get("email"),
        user_metadata=payload.get("user_metadata") or {},
    )


# =============================================================================
# Session Dependencies
# =============================================================================

async def get_current_user(
    store: CookieSessionStore = Depends(get_session_store),
    identity: IdentityStore = Depends(get_identity_store),
) -> AuthUser:
    """
    Resolve the caller from their session cookie.

    This dependency:
    1. Reads the persisted session from the cookie jar
    2. Verifies its access token (signature, expiry, audience)
    3. If only the expiry check failed, rotates the session with its
       refresh token; the new session is queued on `store`, so routes
       using this dependency must apply the store to their response
    4. Returns an AuthUser with the user's id, email and metadata

    Raises:
        UnauthorizedError: 401 if there is no valid session
    """
    session = read_session(store)
    access_token = session.get("access_token") if session else None

    if not access_token:
        raise UnauthorizedError("no session")

    try:
        user = verify_access_token(access_token)
        logger.debug(f"Authenticated user: {user.id}")
        return user
    except SessionExpiredError:
        refresh_token = session.get("refresh_token")
        if not refresh_token:
            raise

    try:
        user = identity.refresh_session(refresh_token)
    except SupabaseClientError as e:
        logger.info(f"Session refresh failed: {e}")
        raise UnauthorizedError("session expired")

    if user is None:
        raise UnauthorizedError("session expired")

    logger.debug(f"Refreshed session for user: {user.id}")
    return user


async def get_current_user_optional(
    store: CookieSessionStore = Depends(get_session_store),
    identity: IdentityStore = Depends(get_identity_store),
) -> Optional[AuthUser]:
    """
    Optionally get the current user.

    Returns None instead of raising when there is no valid session.
    """
    try:
        return await get_current_user(store, identity)
    except UnauthorizedError:
        return None


async def get_live_user(
    user: AuthUser = Depends(get_current_user),
    identity: IdentityStore = Depends(get_identity_store),
) -> AuthUser:
    """
    The caller with metadata read from the provider.

    Token claims are a snapshot from when the token was issued, so they
    miss changes like a reactivation at sign-in. Falls back to the
    verified claims when the provider can't be reached.
    """
    try:
        live = identity.get_user()
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch live user {user.id}, using token claims: {e}")
        return user

    if live is None or live.id != user.id:
        return user
    return live
