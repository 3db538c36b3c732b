# =============================================================================
# lib/session_store.py - Cookie-Backed Session Store
# =============================================================================
# The session store is the only place session tokens are read from or
# written to. Every operation receives it explicitly (as a FastAPI
# dependency), so tests can swap in an in-memory store.
#
# Contract:
# - get(name) -> str | None
# - set(name, value, options) -> None
# - remove(name, options) -> None
#
# Reads only see the cookies that arrived with the request. Writes are
# queued and flushed onto the outgoing response with apply(). A set()
# followed by get() in the same request does NOT observe the write.
#
# Usage:
#   store = CookieSessionStore(request)
#   storage = SessionStorageBridge(store)   # handed to the Supabase client
#   ...
#   store.apply(response)
# =============================================================================

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger(__name__)

# supabase_auth persists the session under this key unless told otherwise
AUTH_STORAGE_KEY = "supabase.auth.token"

# Browsers cap a cookie at ~4KB including name and attributes
MAX_CHUNK_SIZE = 3180

# Same prefix the Supabase SSR helpers use for encoded cookie values
BASE64_PREFIX = "base64-"


@dataclass(frozen=True)
class CookieOptions:
    """Attributes applied to every session cookie write/removal."""
    path: str = "/"
    max_age: int | None = None
    httponly: bool = True
    secure: bool = False
    samesite: str = "lax"


def default_cookie_options() -> CookieOptions:
    """Session cookie options derived from settings."""
    return CookieOptions(
        max_age=settings.SESSION_COOKIE_MAX_AGE,
        secure=settings.is_production,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )


class SessionStore(Protocol):
    """Request-scoped store for opaque session values."""

    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: str, options: CookieOptions | None = None) -> None: ...

    def remove(self, name: str, options: CookieOptions | None = None) -> None: ...


class CookieSessionStore:
    """
    SessionStore backed by the HTTP cookie jar of one request/response cycle.

    Reads come from the inbound request. Writes accumulate until apply()
    copies them onto the response that is actually returned.
    """

    def __init__(self, request: Request, options: CookieOptions | None = None):
        self._cookies: dict[str, str] = dict(request.cookies)
        self._options = options or default_cookie_options()
        self._pending: dict[str, tuple[str | None, CookieOptions]] = {}

    def get(self, name: str) -> str | None:
        return self._cookies.get(name)

    def set(self, name: str, value: str, options: CookieOptions | None = None) -> None:
        self._pending[name] = (value, options or self._options)

    def remove(self, name: str, options: CookieOptions | None = None) -> None:
        self._pending[name] = (None, options or self._options)

    def apply(self, response: Response) -> Response:
        """Flush queued writes onto the response as Set-Cookie headers."""
        for name, (value, options) in self._pending.items():
            if value is None:
                response.delete_cookie(
                    name,
                    path=options.path,
                    secure=options.secure,
                    httponly=options.httponly,
                    samesite=options.samesite,
                )
            else:
                response.set_cookie(
                    name,
                    value,
                    max_age=options.max_age,
                    path=options.path,
                    secure=options.secure,
                    httponly=options.httponly,
                    samesite=options.samesite,
                )
        return response


# =============================================================================
# Supabase Storage Bridge
# =============================================================================

class SessionStorageBridge:
    """
    Adapts a SessionStore to the storage interface the Supabase auth client
    expects (get_item / set_item / remove_item).

    Values are stored base64url-encoded so JSON survives cookie quoting.
    Values longer than MAX_CHUNK_SIZE are split across `<key>.0`, `<key>.1`,
    ... cookies and reassembled on read.
    """

    def __init__(self, store: SessionStore, options: CookieOptions | None = None):
        self.store = store
        self.options = options

    def get_item(self, key: str) -> str | None:
        value = self.store.get(key)
        if value is not None:
            return decode_cookie_value(value)

        chunks = []
        index = 0
        while (chunk := self.store.get(f"{key}.{index}")) is not None:
            chunks.append(chunk)
            index += 1
        return decode_cookie_value("".join(chunks)) if chunks else None

    def set_item(self, key: str, value: str) -> None:
        value = encode_cookie_value(value)
        if len(value) <= MAX_CHUNK_SIZE:
            self.store.set(key, value, self.options)
            self._remove_chunks(key)
            return

        chunks = [value[i:i + MAX_CHUNK_SIZE] for i in range(0, len(value), MAX_CHUNK_SIZE)]
        for index, chunk in enumerate(chunks):
            self.store.set(f"{key}.{index}", chunk, self.options)
        if self.store.get(key) is not None:
            self.store.remove(key, self.options)
        self._remove_chunks(key, start=len(chunks))

    def remove_item(self, key: str) -> None:
        if self.store.get(key) is not None:
            self.store.remove(key, self.options)
        self._remove_chunks(key)

    def _remove_chunks(self, key: str, start: int = 0) -> None:
        """Remove stale chunk cookies left over from a longer value."""
        index = start
        while self.store.get(f"{key}.{index}") is not None:
            self.store.remove(f"{key}.{index}", self.options)
            index += 1


def read_session(store: SessionStore) -> dict[str, Any] | None:
    """
    Decode the persisted Supabase session from the store.

    Returns None when no session cookie is present or it can't be parsed.
    """
    raw = SessionStorageBridge(store).get_item(AUTH_STORAGE_KEY)
    if not raw:
        return None
    try:
        session = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed session cookie")
        return None
    return session if isinstance(session, dict) else None


def revoke_session(store: SessionStore, options: CookieOptions | None = None) -> None:
    """Remove every session cookie held for this request, chunks included."""
    bridge = SessionStorageBridge(store, options)
    bridge.remove_item(AUTH_STORAGE_KEY)
    # The PKCE verifier is only needed until the code is exchanged
    bridge.remove_item(f"{AUTH_STORAGE_KEY}-code-verifier")


def encode_cookie_value(value: str) -> str:
    """Encode a value for cookie storage."""
    encoded = base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")
    return BASE64_PREFIX + encoded


def decode_cookie_value(value: str) -> str | None:
    """
    Decode a stored cookie value.

    Unprefixed values are returned as-is; undecodable ones as None.
    """
    if not value.startswith(BASE64_PREFIX):
        return value
    encoded = value[len(BASE64_PREFIX):]
    try:
        return base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        logger.warning("Ignoring undecodable session cookie")
        return None
