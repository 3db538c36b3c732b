# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the account lifecycle logic:
# - models/: Pydantic schemas for accounts, profiles and callbacks
# - services/: Session exchange, onboarding resolution, deactivation,
#   and the identity/profile stores they talk to
#
# Code in this package should NOT define routes or read requests directly.
# Stores are passed in, which keeps the logic testable with fakes.
# =============================================================================
