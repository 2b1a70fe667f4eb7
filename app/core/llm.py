"""LLM client utilities for LangChain integration."""

import json
import re
from collections.abc import AsyncGenerator
from typing import TypeVar

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

STREAM_LOOKBEHIND_CHARS = 40
REPLAY_SLICE_CHARS = 80

EVIDENCE_MARKERS = (
    "\n## Evidence",
    "\n### Evidence",
    "\n#### Evidence",
    "\n**Evidence**",
    "\nEvidence:",
)

_TRAILING_EVIDENCE_PATTERNS = (
    re.compile(r"\n+#{2,6}\s*Evidence\s*\n[\s\S]*$", re.IGNORECASE),
    re.compile(r"\n+\*\*Evidence\*\*[\s:：]*\n[\s\S]*$", re.IGNORECASE),
    re.compile(r"\n+Evidence\s*[:：][\s\S]*$", re.IGNORECASE),
)


def get_llm(model: str | None = None, temperature: float | None = 0.1) -> ChatOpenAI:
    """
    Get configured LLM instance against the OpenAI-compatible chat API.

    Args:
        model: Model name override (defaults to CHAT_MODEL)
        temperature: Temperature for generation, None for the provider default

    Returns:
        ChatOpenAI instance configured with API key, base URL and model
    """
    settings = get_settings()

    kwargs = {}
    if temperature is not None:
        kwargs["temperature"] = temperature

    return ChatOpenAI(
        api_key=settings.CHAT_API_KEY or settings.OPENAI_API_KEY,
        base_url=settings.CHAT_API_BASE_URL,
        model=model or settings.CHAT_MODEL,
        **kwargs,
    )


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json(raw_output: str, model: type[T]) -> T:
    """
    Parse LLM output as JSON and validate against a Pydantic model.

    Handles common LLM response quirks:
    - Markdown code fences (```json ... ```)
    - Leading/trailing whitespace

    Args:
        raw_output: Raw string from LLM response
        model: Pydantic model class to validate against

    Returns:
        Validated Pydantic model instance

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
        pydantic.ValidationError: If parsed JSON doesn't match schema
    """
    cleaned = _strip_llm_fences(raw_output)
    parsed = json.loads(cleaned)
    return model.model_validate(parsed)


# =============================================================================
# Evidence section handling
# =============================================================================


def find_evidence_start(text: str) -> int:
    """Index of the earliest evidence heading in ``text``, or -1."""
    positions = [idx for idx in (text.find(marker) for marker in EVIDENCE_MARKERS) if idx >= 0]
    return min(positions) if positions else -1


def strip_trailing_evidence_section(text: str) -> str:
    for pattern in _TRAILING_EVIDENCE_PATTERNS:
        match = pattern.search(text)
        if match:
            return text[: match.start()]
    return text


def finalize_chat_markdown(raw: str, evidence_markdown: str | None = None) -> str:
    base = strip_trailing_evidence_section(raw).strip()
    if not (evidence_markdown or "").strip():
        return base
    return f"{base}\n\n{evidence_markdown.strip()}"


# =============================================================================
# Generation
# =============================================================================


def build_chat_messages(
    system_prompt: str,
    user_message: str,
    context: str,
) -> list[BaseMessage]:
    return [
        SystemMessage(content=system_prompt),
        HumanMessage(content=f"## Background Context\n{context}\n\n## User Question\n{user_message}"),
    ]


def _message_text(content) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(part if isinstance(part, str) else part.get("text", "") for part in content)
    return ""


async def stream_chat(
    system_prompt: str,
    user_message: str,
    context: str,
    evidence_markdown: str | None = None,
) -> AsyncGenerator[tuple[str, str], None]:
    """
    Stream an answer as ``("append", text)`` / ``("replace", text)`` events.

    While streaming, the last 40 characters are held back so an evidence
    heading split across deltas is still caught; once one appears nothing
    after it is forwarded. If streaming fails the full answer is fetched
    without streaming and sent as a single ``replace`` of any partial text.
    With streaming disabled the finalized answer is replayed in 80-char
    ``append`` slices.
    """
    settings = get_settings()
    llm = get_llm(model=settings.CHAT_MODEL, temperature=None)
    messages = build_chat_messages(system_prompt, user_message, context)

    if settings.CHAT_STREAMING:
        emitted = False
        try:
            buffer = ""
            stopped_at_evidence = False

            async for chunk in llm.astream(messages):
                delta = _message_text(chunk.content)
                if not delta or stopped_at_evidence:
                    continue

                buffer += delta
                evidence_index = find_evidence_start(buffer)
                if evidence_index >= 0:
                    safe = buffer[:evidence_index]
                    if safe:
                        emitted = True
                        yield "append", safe
                    buffer = ""
                    stopped_at_evidence = True
                    continue

                if len(buffer) > STREAM_LOOKBEHIND_CHARS:
                    emit = buffer[: len(buffer) - STREAM_LOOKBEHIND_CHARS]
                    buffer = buffer[len(buffer) - STREAM_LOOKBEHIND_CHARS :]
                    emitted = True
                    yield "append", emit

            if not stopped_at_evidence:
                remainder = buffer.rstrip()
                if remainder:
                    yield "append", remainder

            if (evidence_markdown or "").strip():
                yield "append", f"\n\n{evidence_markdown.strip()}"
            return

        except Exception as e:
            logger.warning(f"Streaming failed (emitted={emitted}), falling back to non-streaming: {e}")

        response = await llm.ainvoke(messages)
        yield "replace", finalize_chat_markdown(_message_text(response.content), evidence_markdown)
        return

    response = await llm.ainvoke(messages)
    finalized = finalize_chat_markdown(_message_text(response.content), evidence_markdown)
    for start in range(0, len(finalized), REPLAY_SLICE_CHARS):
        yield "append", finalized[start : start + REPLAY_SLICE_CHARS]


async def generate_text(
    system_prompt: str,
    user_message: str,
    model: str | None = None,
    temperature: float | None = None,
) -> str:
    """Single non-streaming completion; returns the message text."""
    settings = get_settings()
    llm = get_llm(model=model or settings.TEXT_MODEL, temperature=temperature)
    response = await llm.ainvoke(
        [SystemMessage(content=system_prompt), HumanMessage(content=user_message)]
    )
    return _message_text(response.content)
