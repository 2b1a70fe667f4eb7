"""Chat assistant API: retrieval-grounded answers streamed as Server-Sent Events."""

import json
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from app.api.deps import get_owner_id
from app.core.chat_context import ChatContext, assemble_chat_context
from app.core.llm import stream_chat
from app.core.logging import get_logger
from app.core.rate_limiter import check_chat_rate_limit, get_client_ip
from app.core.schemas_chat import ChatRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/chat")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def sse_event(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def generate_chat_events(chat: ChatContext) -> AsyncGenerator[str, None]:
    """
    Yield the SSE stream for one answer.

    Order is one ``sources`` event, then ``text`` deltas or a ``replace`` of
    the whole answer, then ``[DONE]``. A generation failure ends the stream
    with a single ``error`` event instead of ``[DONE]``.
    """
    try:
        sources = [ref.to_dict() for ref in chat.sources_for_ui]
        yield sse_event({"type": "sources", "sources": sources})

        async for kind, content in stream_chat(chat.system_prompt, chat.user_prompt, chat.context):
            event_type = "replace" if kind == "replace" else "text"
            yield sse_event({"type": event_type, "content": content})

        yield "data: [DONE]\n\n"

    except Exception as e:
        logger.error(f"Error in chat stream: {e}", exc_info=True)
        yield sse_event({"type": "error", "error": "Generation failed"})


@router.post("")
async def chat(
    body: ChatRequest,
    request: Request,
    owner_id: str = Depends(get_owner_id),
) -> StreamingResponse:
    """
    Answer a visitor question about the portfolio owner.

    Rate limited per client IP. Context (retrieved chunks, or catalog items
    when retrieval finds nothing, plus a portfolio index) is assembled before
    the stream opens, so retrieval failures surface as a 500 JSON error.

    Raises:
        HTTPException 429: Rate limit exceeded (with Retry-After)
        HTTPException 500: Context assembly failed
    """
    check_chat_rate_limit(get_client_ip(request))

    try:
        chat_context = await assemble_chat_context(owner_id, body)
    except Exception as e:
        logger.error(f"Error assembling chat context: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e

    logger.info(
        f"Chat request in {body.mode} mode with {len(chat_context.sources)} sources",
        extra={"mode": body.mode, "catalog_fallback": chat_context.is_catalog_fallback},
    )

    return StreamingResponse(
        generate_chat_events(chat_context),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
