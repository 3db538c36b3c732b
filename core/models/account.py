# =============================================================================
# core/models/account.py - Account Schemas
# =============================================================================
# Accounts are Supabase auth users. Deactivation status isn't a column; it
# lives in the user's metadata:
#
#   {"is_deactivated": true, "deactivated_at": "2024-01-15T10:30:00+00:00"}
#
# AuthUser is what a verified session (or a successful code exchange)
# tells us about the caller. Account is the lifecycle view derived from it.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from lib.utils import parse_timestamp


class AccountStatus(str, Enum):
    """
    Auth status of an account.

    Deactivation is reversible and distinct from deletion.
    """
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class AuthUser(BaseModel):
    """
    Authenticated user, from a verified access token or an exchange response.
    """
    id: UUID
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class Account(BaseModel):
    """
    Lifecycle view of an account.

    Example:
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "email": "sam@example.com",
            "status": "deactivated",
            "deactivated_at": "2024-01-15T10:30:00Z"
        }
    """
    id: UUID
    email: str | None = None
    status: AccountStatus = AccountStatus.ACTIVE
    deactivated_at: datetime | None = None

    @classmethod
    def from_auth_user(cls, user: AuthUser) -> "Account":
        metadata = user.user_metadata or {}
        deactivated = bool(metadata.get("is_deactivated"))
        return cls(
            id=user.id,
            email=user.email,
            status=AccountStatus.DEACTIVATED if deactivated else AccountStatus.ACTIVE,
            deactivated_at=parse_timestamp(metadata.get("deactivated_at")) if deactivated else None,
        )

    @property
    def is_deactivated(self) -> bool:
        return self.status == AccountStatus.DEACTIVATED
