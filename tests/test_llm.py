"""Tests for chat streaming, evidence handling and JSON parsing."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import BaseModel, ValidationError

from app.core.config import Settings
from app.core.llm import (
    build_chat_messages,
    finalize_chat_markdown,
    find_evidence_start,
    generate_text,
    parse_llm_json,
    stream_chat,
    strip_trailing_evidence_section,
)


class _AsyncIterator:
    """Helper to make a list behave as an async iterator."""

    def __init__(self, items):
        self._items = list(items)
        self._index = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._index >= len(self._items):
            raise StopAsyncIteration
        item = self._items[self._index]
        self._index += 1
        if isinstance(item, Exception):
            raise item
        return item


class _Payload(BaseModel):
    name: str
    count: int


def _chunks(*texts):
    return [MagicMock(content=text) for text in texts]


def _mock_llm(stream_items=None, invoke_text="fallback answer"):
    llm = MagicMock()
    llm.astream.side_effect = lambda messages: _AsyncIterator(stream_items or [])
    llm.ainvoke = AsyncMock(return_value=MagicMock(content=invoke_text))
    return llm


async def _collect(gen):
    return [event async for event in gen]


def test_parse_llm_json_plain_and_fenced():
    assert parse_llm_json('{"name": "a", "count": 1}', _Payload).count == 1
    assert parse_llm_json('```json\n{"name": "b", "count": 2}\n```', _Payload).name == "b"
    assert parse_llm_json('Here you go:\n```\n{"name": "c", "count": 3}\n```', _Payload).count == 3


def test_parse_llm_json_invalid():
    with pytest.raises(ValueError):
        parse_llm_json("not json", _Payload)
    with pytest.raises(ValidationError):
        parse_llm_json('{"name": "a"}', _Payload)


def test_find_evidence_start():
    assert find_evidence_start("Answer.\n## Evidence\n- x") == 7
    assert find_evidence_start("Answer.\nEvidence: x\n**Evidence**") == 7
    assert find_evidence_start("No heading here") == -1


def test_strip_trailing_evidence_section():
    assert strip_trailing_evidence_section("Answer.\n\n### Evidence\n- [1] a") == "Answer."
    assert strip_trailing_evidence_section("Answer.\n\n**Evidence**:\n- a") == "Answer."
    assert strip_trailing_evidence_section("Answer.\nEvidence: a, b") == "Answer."
    assert strip_trailing_evidence_section("Evidence-based answer.") == "Evidence-based answer."


def test_finalize_chat_markdown():
    assert finalize_chat_markdown("Answer.\n\n## Evidence\n- old") == "Answer."
    assert finalize_chat_markdown("Answer.", "  ## Evidence\n- new  ") == "Answer.\n\n## Evidence\n- new"


def test_build_chat_messages():
    system, human = build_chat_messages("be nice", "What?", "SOURCE 1")
    assert system.content == "be nice"
    assert human.content == "## Background Context\nSOURCE 1\n\n## User Question\nWhat?"


@pytest.mark.asyncio
async def test_stream_chat_holds_back_lookbehind():
    text = "A" * 50 + "B" * 50
    llm = _mock_llm(_chunks(text[:50], text[50:]))

    with patch("app.core.llm.get_llm", return_value=llm):
        events = await _collect(stream_chat("sys", "q", "ctx"))

    assert all(kind == "append" for kind, _ in events)
    assert "".join(t for _, t in events) == text
    # the final 40 chars are only released once the stream ends
    assert events[-1] == ("append", "B" * 40)


@pytest.mark.asyncio
async def test_stream_chat_stops_at_split_evidence_heading():
    llm = _mock_llm(_chunks("The answer is 42.\n## Evi", "dence\n- [1] source", " more"))

    with patch("app.core.llm.get_llm", return_value=llm):
        events = await _collect(stream_chat("sys", "q", "ctx", evidence_markdown="## Evidence\n- real"))

    text = "".join(t for _, t in events)
    assert text == "The answer is 42.\n\n## Evidence\n- real"


@pytest.mark.asyncio
async def test_stream_chat_falls_back_to_invoke_on_error():
    llm = _mock_llm([MagicMock(content="X" * 60), RuntimeError("stream broke")], invoke_text="Full answer.")

    with patch("app.core.llm.get_llm", return_value=llm):
        events = await _collect(stream_chat("sys", "q", "ctx"))

    assert events[0] == ("append", "X" * 20)
    assert events[-1] == ("replace", "Full answer.")
    llm.ainvoke.assert_awaited_once()


@pytest.mark.asyncio
async def test_stream_chat_replays_when_streaming_disabled():
    settings = Settings(
        SUPABASE_URL="https://test.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="k",
        OPENAI_API_KEY="k",
        CHAT_STREAMING=False,
    )
    answer = "word " * 40
    llm = _mock_llm(invoke_text=answer)

    with (
        patch("app.core.llm.get_settings", return_value=settings),
        patch("app.core.llm.get_llm", return_value=llm),
    ):
        events = await _collect(stream_chat("sys", "q", "ctx"))

    assert all(len(t) <= 80 for _, t in events)
    assert "".join(t for _, t in events) == answer.strip()
    llm.astream.assert_not_called()


@pytest.mark.asyncio
async def test_generate_text():
    llm = _mock_llm(invoke_text='{"ok": true}')

    with patch("app.core.llm.get_llm", return_value=llm) as mock_get_llm:
        result = await generate_text("sys", "user", temperature=0.0)

    assert result == '{"ok": true}'
    assert mock_get_llm.call_args.kwargs == {"model": "gpt-4o-mini", "temperature": 0.0}
