# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Sayso accounts API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
#   python -m app.main          (binds API_HOST:API_PORT)
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    SaysoException,
    sayso_exception_handler,
    validation_exception_handler,
)
from app.routers import health, user
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Clients are created lazily on first use, so startup only logs.
    """
    logger.info(f"Starting Sayso accounts API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    yield

    logger.info("Shutting down Sayso accounts API")


# Create FastAPI application
app = FastAPI(
    title="Sayso Accounts API",
    description="""
## Account lifecycle and session establishment

### How It Works

1. **Sign in** - The identity provider redirects to `/auth/callback` with an
   authorization code, which is exchanged once for a cookie-backed session
2. **Onboarding gate** - Accounts that haven't finished onboarding land on the
   onboarding entry page; everyone else lands on the home page
3. **Deactivate** - `POST /api/v1/user/deactivate-account` marks the account
   deactivated and signs out; signing in again reactivates it
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "OAuth callback, sign-out and current account",
        },
        {
            "name": "User",
            "description": "Account self-service",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# Session cookies need credentialed CORS, so origins are always explicit
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(SaysoException)
async def handle_sayso_exception(request: Request, exc: SaysoException):
    """Handle custom Sayso exceptions."""
    return await sayso_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# OAuth redirect target (registered with the identity provider)
app.include_router(
    auth_routes.callback_router,
    prefix="/auth",
    tags=["Auth"]
)

# Session endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Account self-service endpoints
app.include_router(
    user.router,
    prefix="/api/v1/user",
    tags=["User"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Sayso Accounts API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.is_development,
    )
