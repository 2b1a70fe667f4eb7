"""Shared route dependencies."""

from app.core.config import get_settings


def get_owner_id() -> str:
    """Tenant id for the current request (single-tenant: the configured owner)."""
    return get_settings().DEFAULT_OWNER_ID
