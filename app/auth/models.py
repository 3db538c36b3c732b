# =============================================================================
# app/auth/models.py - Authentication Response Models
# =============================================================================
# Pydantic models for auth and account endpoint responses.
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.account import AccountStatus
from core.models.profile import OnboardingStep


class AccountResponse(BaseModel):
    """
    The signed-in account with its onboarding progress.

    `next_path` is where the OAuth callback would send this account.
    """
    id: UUID
    email: str | None = None
    status: AccountStatus
    deactivated_at: datetime | None = None
    onboarding_step: OnboardingStep
    onboarding_complete: bool
    next_path: str


class SuccessResponse(BaseModel):
    """Generic success acknowledgement."""
    success: bool = True
    message: str | None = None


class ErrorResponse(BaseModel):
    """Error body returned by account endpoints."""
    error: str = Field(..., example="Unauthorized")
    code: str | None = Field(default=None, example="UNAUTHORIZED")
