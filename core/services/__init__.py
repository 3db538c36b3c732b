# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .deactivation_service import DeactivationService
from .identity_store import IdentityStore
from .onboarding_resolver import resolve_onboarding_destination
from .profile_store import ProfileStore
from .session_exchange import SessionExchangeService

__all__ = [
    "DeactivationService",
    "IdentityStore",
    "ProfileStore",
    "SessionExchangeService",
    "resolve_onboarding_destination",
]
