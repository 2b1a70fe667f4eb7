"""Visitor event tracking."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_owner_id
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.schemas_content import TrackEventRequest
from app.db import events as events_db

logger = get_logger(__name__)

router = APIRouter(prefix="/track")

VISITOR_COOKIE = "portfolio_vid"
VISITOR_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def _forwarded_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return None
    return forwarded.split(",")[0].strip() or None


@router.post("/event")
async def track_event(
    body: TrackEventRequest,
    request: Request,
    owner_id: str = Depends(get_owner_id),
) -> JSONResponse:
    """Record one analytics event, issuing a visitor id cookie on first visit."""
    event_type = body.type.strip()
    if not event_type:
        raise HTTPException(status_code=400, detail="type is required")

    existing_visitor = request.cookies.get(VISITOR_COOKIE)
    visitor_id = existing_visitor or str(uuid.uuid4())

    try:
        events_db.record_event(
            owner_id,
            {
                "visitor_id": visitor_id,
                "type": event_type,
                "ip": _forwarded_ip(request),
                "user_agent": request.headers.get("user-agent"),
                "referer": request.headers.get("referer"),
                "meta": body.meta,
            },
        )
    except Exception as e:
        logger.error(f"Error recording event {event_type}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record event") from e

    response = JSONResponse({"ok": True})
    if not existing_visitor:
        response.set_cookie(
            VISITOR_COOKIE,
            visitor_id,
            max_age=VISITOR_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            secure=get_settings().is_production,
            samesite="lax",
        )
    return response
