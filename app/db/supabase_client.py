"""Service-role Supabase client shared by every db module."""

from functools import lru_cache

from supabase import Client, create_client

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Return the cached service-role client.

    The service role bypasses row level security, so every query built on this
    client must filter by ``owner_id`` itself.

    Raises:
        RuntimeError: If the URL or key is blank, or the client cannot be built
    """
    settings = get_settings()
    if not settings.SUPABASE_URL.strip() or not settings.SUPABASE_SERVICE_ROLE_KEY.strip():
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e

    logger.info("Supabase client initialized", extra={"supabase_url": settings.SUPABASE_URL})
    return client
