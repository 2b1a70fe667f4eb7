"""Pydantic schemas for the public chat and JD match endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ChatMode = Literal["auto", "tech", "behavior"]

MAX_SESSION_CONTEXT_CHARS = 12000


class ChatTurn(BaseModel):
    role: str = Field(..., description="user or assistant")
    content: str = Field("", description="Turn text")


class ChatRequest(BaseModel):
    """Request body for POST /api/chat. Accepts camelCase aliases from the browser client."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, description="User message")
    conversation_history: list[ChatTurn] = Field(
        default_factory=list, alias="conversationHistory", description="Prior turns"
    )
    mode: ChatMode = Field("auto", description="auto, tech or behavior")
    session_context: str | None = Field(
        None, alias="sessionContext", description="Extra user-provided context (e.g. a JD)"
    )

    @field_validator("session_context")
    @classmethod
    def _trim_session_context(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()[:MAX_SESSION_CONTEXT_CHARS] or None


class JDMatchRequest(BaseModel):
    jd: str = Field(..., min_length=50, max_length=10000, description="Job description text")


class ParsedJD(BaseModel):
    """Structured fields the LLM extracts from a job description."""

    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    years_experience: float | None = None
    responsibilities: list[str] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
