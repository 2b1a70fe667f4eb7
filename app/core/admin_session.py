"""Signed admin session cookies and CSRF tokens.

A session cookie value is ``{token}.{expires_at_ms}.{signature}`` where the
signature is the base64url (unpadded) HMAC-SHA256 of ``{token}.{expires_at_ms}``
under the admin session secret. There is no server-side session store.
"""

import base64
import binascii
import hashlib
import hmac
import secrets
import time

from app.core.config import get_settings

SESSION_COOKIE = "portfolio_session"
CSRF_COOKIE = "portfolio_csrf"
CSRF_HEADER = "X-CSRF-Token"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24

DEV_SESSION_SECRET = "dev-insecure-admin-session-secret"
DEV_ADMIN_PASSWORD = "admin123"


def get_session_secret() -> str:
    """Resolve the HMAC secret; empty string means sessions are disabled."""
    settings = get_settings()
    secret = settings.ADMIN_SESSION_SECRET or settings.ADMIN_PASSWORD or ""
    if secret:
        return secret
    if settings.is_production:
        return ""
    return DEV_SESSION_SECRET


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def _sign(secret: str, payload: str) -> bytes:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).digest()


def generate_session_token() -> str:
    return secrets.token_hex(32)


def generate_csrf_token() -> str:
    return secrets.token_hex(16)


def create_session_cookie_value(now_ms: int | None = None) -> str:
    """
    Create a signed session cookie value valid for 24 hours.

    Raises:
        RuntimeError: If no secret is configured in production
    """
    secret = get_session_secret()
    if not secret:
        raise RuntimeError("ADMIN_SESSION_SECRET (or ADMIN_PASSWORD) must be set in production.")

    issued_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    expires_at_ms = issued_ms + SESSION_MAX_AGE_SECONDS * 1000
    payload = f"{generate_session_token()}.{expires_at_ms}"

    return f"{payload}.{_b64url_encode(_sign(secret, payload))}"


def validate_session_cookie_value(value: str | None, now_ms: int | None = None) -> bool:
    """Return True only for an unexpired cookie whose signature matches."""
    if not value:
        return False

    secret = get_session_secret()
    if not secret:
        return False

    parts = value.split(".")
    if len(parts) != 3:
        return False

    token, expires_raw, signature_raw = parts
    if not token or not expires_raw or not signature_raw:
        return False

    try:
        expires_at_ms = int(expires_raw)
    except ValueError:
        return False

    current_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    if expires_at_ms <= current_ms:
        return False

    try:
        signature = _b64url_decode(signature_raw)
    except (binascii.Error, ValueError):
        return False

    expected = _sign(secret, f"{token}.{expires_raw}")
    return hmac.compare_digest(signature, expected)


def verify_password(password: str) -> bool:
    """Compare against ADMIN_PASSWORD (``admin123`` outside production when unset)."""
    settings = get_settings()
    expected = settings.ADMIN_PASSWORD or ("" if settings.is_production else DEV_ADMIN_PASSWORD)
    if not expected:
        return False
    return hmac.compare_digest(password.encode(), expected.encode())


def create_session() -> tuple[str, str]:
    """Return ``(session_cookie_value, csrf_token)`` for a fresh login."""
    return create_session_cookie_value(), generate_csrf_token()


def session_cookie_options() -> dict:
    settings = get_settings()
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "strict",
        "max_age": SESSION_MAX_AGE_SECONDS,
        "path": "/",
    }
