# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Liveness and readiness checks for load balancers and monitoring.
# Readiness covers both things a sign-in depends on: the Supabase auth
# service (code exchange) and the profiles table (onboarding lookup).
# =============================================================================

import logging
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: str
    environment: str
    version: str


class DependencyChecks(BaseModel):
    """Status of each upstream a sign-in needs."""
    auth: str
    profiles: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    status: str
    checks: DependencyChecks
    timestamp: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_auth_service() -> str:
    """Ping the Supabase auth health endpoint."""
    try:
        response = httpx.get(
            f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/health",
            headers={"apikey": settings.SUPABASE_ANON_KEY},
            timeout=5,
        )
        response.raise_for_status()
        return "healthy"
    except httpx.HTTPError as e:
        logger.warning(f"Auth service health check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


def _check_profiles_table() -> str:
    """Run a one-row select against the profiles table."""
    try:
        SupabaseClient.get_client().table("profiles").select("user_id").limit(1).execute()
        return "healthy"
    except Exception as e:
        logger.warning(f"Profiles table health check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns basic health status without touching any upstream.
    """
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Readiness check endpoint.

    Reports "degraded" when either the auth service or the profiles
    table is unreachable.
    """
    checks = DependencyChecks(
        auth=_check_auth_service(),
        profiles=_check_profiles_table(),
    )
    ready = checks.auth == "healthy" and checks.profiles == "healthy"

    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """Liveness check endpoint."""
    return LivenessResponse(
        status="alive",
        timestamp=_now(),
    )
