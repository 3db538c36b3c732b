# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - account.py: Authenticated user and account lifecycle status
# - profile.py: Profile row and onboarding steps
# - session.py: OAuth callback parameters/results and deactivation outcome
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Account Models
# -----------------------------------------------------------------------------
from .account import (
    Account,
    AccountStatus,
    AuthUser,
)

# -----------------------------------------------------------------------------
# Profile Models
# -----------------------------------------------------------------------------
from .profile import (
    OnboardingStep,
    Profile,
)

# -----------------------------------------------------------------------------
# Session Models
# -----------------------------------------------------------------------------
from .session import (
    CallbackError,
    CallbackParams,
    CallbackResult,
    DeactivationResult,
)

__all__ = [
    # Account
    "Account",
    "AccountStatus",
    "AuthUser",
    # Profile
    "OnboardingStep",
    "Profile",
    # Session
    "CallbackError",
    "CallbackParams",
    "CallbackResult",
    "DeactivationResult",
]
