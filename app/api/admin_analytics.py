"""Admin analytics: event counts for the last week."""

from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_owner_id
from app.core.logging import get_logger
from app.db import events as events_db

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/analytics")

WINDOW_DAYS = 7


def _utc_day(timestamp: str) -> str:
    parsed = datetime.fromisoformat(timestamp)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return parsed.date().isoformat()


def summarize_events(
    events: list[dict[str, Any]],
    now: datetime | None = None,
    window_days: int = WINDOW_DAYS,
) -> dict[str, Any]:
    """
    Count events by type and by UTC day.

    ``byDay`` always lists every day of the window, oldest first, with zero
    counts for quiet days.
    """
    now = now or datetime.now(UTC)
    by_type = Counter(event["type"] for event in events)
    by_day = Counter(_utc_day(event["created_at"]) for event in events)

    days = []
    for offset in range(window_days - 1, -1, -1):
        key = (now - timedelta(days=offset)).date().isoformat()
        days.append({"day": key, "count": by_day.get(key, 0)})

    return {
        "window_days": window_days,
        "total": len(events),
        "byType": dict(by_type),
        "byDay": days,
    }


@router.get("")
async def get_analytics(owner_id: str = Depends(get_owner_id)) -> dict[str, Any]:
    try:
        events = events_db.list_events_since(owner_id, WINDOW_DAYS)
        return summarize_events(events)
    except Exception as e:
        logger.error(f"Error fetching analytics: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
