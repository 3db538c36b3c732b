# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - user.py: Account self-service endpoints (deactivation)
#
# Auth routes (OAuth callback, sign-out, /me) live in app/auth/routes.py.
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import user

__all__ = [
    "health",
    "user",
]
