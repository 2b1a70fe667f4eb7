"""Tests for the streaming chat endpoint."""

import json
from unittest.mock import AsyncMock, patch

from app.core.chat_context import ChatContext
from app.core.retrieval import ChunkReference


def parse_sse_events(response_text: str) -> list:
    """Parse SSE data lines; ``[DONE]`` is kept as a plain string."""
    events = []
    for line in response_text.split("\n"):
        if line.startswith("data: "):
            data = line[6:]
            events.append(data if data == "[DONE]" else json.loads(data))
    return events


def _context(**overrides) -> ChatContext:
    values = {
        "sources": [
            ChunkReference("c1", "project", "Twin", "p1", "twin", 0.03, "preview one"),
            ChunkReference("c2", "project", "Twin", "p1", "twin", 0.02, "preview two"),
        ],
        "context": "SOURCE 1",
        "system_prompt": "system",
        "user_prompt": "User: hi",
    }
    values.update(overrides)
    return ChatContext(**values)


def _stream(*events):
    async def fake_stream_chat(system_prompt, user_message, context, evidence_markdown=None):
        for event in events:
            if isinstance(event, Exception):
                raise event
            yield event

    return fake_stream_chat


def test_chat_streams_sources_text_done(client):
    with (
        patch("app.api.chat.assemble_chat_context", new=AsyncMock(return_value=_context())) as mock_assemble,
        patch("app.api.chat.stream_chat", new=_stream(("append", "Hello "), ("append", "there."))),
    ):
        response = client.post("/api/chat", json={"message": "What did you build?"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"

    events = parse_sse_events(response.text)
    assert events[0]["type"] == "sources"
    # two chunks of one project collapse to one UI source
    assert len(events[0]["sources"]) == 1
    assert events[0]["sources"][0]["source_slug"] == "twin"
    assert events[1] == {"type": "text", "content": "Hello "}
    assert events[2] == {"type": "text", "content": "there."}
    assert events[-1] == "[DONE]"

    owner_id, request = mock_assemble.call_args.args
    assert owner_id == "00000000-0000-0000-0000-000000000001"
    assert request.message == "What did you build?"


def test_chat_replace_event(client):
    with (
        patch("app.api.chat.assemble_chat_context", new=AsyncMock(return_value=_context())),
        patch("app.api.chat.stream_chat", new=_stream(("append", "partial"), ("replace", "Full answer."))),
    ):
        events = parse_sse_events(client.post("/api/chat", json={"message": "hi"}).text)

    assert events[2] == {"type": "replace", "content": "Full answer."}


def test_chat_generation_error_event(client):
    with (
        patch("app.api.chat.assemble_chat_context", new=AsyncMock(return_value=_context())),
        patch("app.api.chat.stream_chat", new=_stream(("append", "x"), RuntimeError("model down"))),
    ):
        events = parse_sse_events(client.post("/api/chat", json={"message": "hi"}).text)

    assert events[-1] == {"type": "error", "error": "Generation failed"}
    assert "[DONE]" not in events


def test_chat_accepts_camel_case_fields(client):
    with (
        patch("app.api.chat.assemble_chat_context", new=AsyncMock(return_value=_context())) as mock_assemble,
        patch("app.api.chat.stream_chat", new=_stream()),
    ):
        client.post(
            "/api/chat",
            json={
                "message": "hi",
                "mode": "tech",
                "conversationHistory": [{"role": "user", "content": "earlier"}],
                "sessionContext": "A job description",
            },
        )

    request = mock_assemble.call_args.args[1]
    assert request.mode == "tech"
    assert request.conversation_history[0].content == "earlier"
    assert request.session_context == "A job description"


def test_chat_empty_message_rejected(client):
    response = client.post("/api/chat", json={"message": ""})

    assert response.status_code == 400
    assert response.json()["error"].startswith("message:")


def test_chat_invalid_mode_rejected(client):
    assert client.post("/api/chat", json={"message": "hi", "mode": "poetry"}).status_code == 400


def test_chat_context_failure_is_500(client):
    with patch("app.api.chat.assemble_chat_context", new=AsyncMock(side_effect=RuntimeError("db down"))):
        response = client.post("/api/chat", json={"message": "hi"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_chat_rate_limited_after_burst(client):
    with (
        patch("app.api.chat.assemble_chat_context", new=AsyncMock(return_value=_context())),
        patch("app.api.chat.stream_chat", new=_stream()),
    ):
        statuses = [
            client.post("/api/chat", json={"message": "hi"}, headers={"x-forwarded-for": "198.51.100.7"}).status_code
            for _ in range(16)
        ]
        other_ip = client.post("/api/chat", json={"message": "hi"}, headers={"x-forwarded-for": "198.51.100.8"})

    assert statuses[:15] == [200] * 15
    assert statuses[15] == 429
    assert other_ip.status_code == 200
