# =============================================================================
# core/models/profile.py - Profile Schemas
# =============================================================================
# A profile row (public.profiles) is created alongside each account and
# tracks progress through mandatory onboarding:
#
#   not_started -> interests -> deal_breakers -> complete
#
# This service only reads onboarding_step; the onboarding pages write it.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class OnboardingStep(str, Enum):
    """
    Ordered marker of progress through account setup.
    """
    NOT_STARTED = "not_started"
    INTERESTS = "interests"
    DEAL_BREAKERS = "deal_breakers"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: "str | OnboardingStep | None") -> "OnboardingStep":
        """
        Lenient parse for values read from the database.

        Missing or unrecognised values count as not started.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.NOT_STARTED


class Profile(BaseModel):
    """
    The slice of a profile row this service works with.

    Example:
        {
            "user_id": "550e8400-e29b-41d4-a716-446655440000",
            "onboarding_step": "interests",
            "updated_at": "2024-01-15T10:30:00Z"
        }
    """
    user_id: UUID
    onboarding_step: OnboardingStep = Field(
        default=OnboardingStep.NOT_STARTED,
        description="Current onboarding step"
    )
    updated_at: datetime | None = None

    @field_validator("onboarding_step", mode="before")
    @classmethod
    def _coerce_step(cls, value):
        return OnboardingStep.parse(value)

    @property
    def onboarding_complete(self) -> bool:
        return self.onboarding_step == OnboardingStep.COMPLETE
