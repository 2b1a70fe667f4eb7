"""Visitor analytics events."""

from datetime import UTC, datetime, timedelta
from typing import Any

from app.core.logging import get_logger
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "events"


def record_event(owner_id: str, event: dict[str, Any]) -> None:
    """Insert one analytics event row."""
    supabase = get_supabase()
    supabase.table(TABLE).insert({**event, "owner_id": owner_id}).execute()
    logger.debug(f"Recorded event {event.get('type')}", extra={"event_type": event.get("type")})


def list_events_since(owner_id: str, days: int) -> list[dict[str, Any]]:
    """Return ``type`` and ``created_at`` of events in the last ``days`` days."""
    supabase = get_supabase()
    since = (datetime.now(UTC) - timedelta(days=days)).isoformat()
    response = (
        supabase.table(TABLE)
        .select("type, created_at")
        .eq("owner_id", owner_id)
        .gte("created_at", since)
        .order("created_at")
        .execute()
    )
    return response.data or []
