# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Error bodies follow the shape the web client expects: {"error": "..."}.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class SaysoException(Exception):
    """
    Base exception for the Sayso accounts API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "SAYSO_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Auth Exceptions
# =============================================================================

class UnauthorizedError(SaysoException):
    """Raised when the caller has no valid session."""

    def __init__(self, reason: str | None = None):
        super().__init__(
            message="Unauthorized",
            code="UNAUTHORIZED",
            status_code=401,
            suggestion="Sign in again to start a new session",
            details={"reason": reason} if reason else None,
        )


class SessionExpiredError(UnauthorizedError):
    """Raised when the session's access token has expired (it may still be refreshable)."""

    def __init__(self):
        super().__init__("token expired")


# =============================================================================
# Account Exceptions
# =============================================================================

class DeactivationFailedError(SaysoException):
    """Raised when the authoritative deactivation write fails."""

    def __init__(self, message: str = "Failed to deactivate account. Please contact support."):
        super().__init__(
            message=message,
            code="DEACTIVATION_FAILED",
            status_code=500,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def sayso_exception_handler(
    request: Request,
    exc: SaysoException
) -> JSONResponse:
    """
    Convert SaysoException to JSON response.

    Returns structured error with:
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle request validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": str(exc)
        }
    )
