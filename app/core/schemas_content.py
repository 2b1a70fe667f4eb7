"""Pydantic schemas for admin content requests."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ContentStatus = Literal["draft", "published", "archived"]
SkillCategory = Literal["language", "framework", "tool", "platform", "methodology", "other"]


class _CreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class _UpdateRequest(BaseModel):
    """Partial update: only fields the client sent are applied."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)

    def updates(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"id"})


# =============================================================================
# Projects
# =============================================================================


class ProjectCreateRequest(_CreateRequest):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    slug: str | None = None
    subtitle: str | None = None
    details: str | None = None
    cover_image: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    repo_url: str | None = None
    demo_url: str | None = None
    article_url: str | None = None
    tech_stack: list[str] = Field(default_factory=list)
    is_featured: bool = False
    display_order: int = 0
    status: ContentStatus = "draft"

    def row(self) -> dict[str, Any]:
        """Column values with blank optional strings stored as NULL."""
        data = self.model_dump(exclude={"slug"})
        return {k: (v or None) if isinstance(v, str) else v for k, v in data.items()}


class ProjectUpdateRequest(_UpdateRequest):
    title: str | None = None
    description: str | None = None
    slug: str | None = None
    subtitle: str | None = None
    details: str | None = None
    cover_image: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    repo_url: str | None = None
    demo_url: str | None = None
    article_url: str | None = None
    tech_stack: list[str] | None = None
    is_featured: bool | None = None
    display_order: int | None = None
    status: ContentStatus | None = None


# =============================================================================
# Articles
# =============================================================================


class ArticleCreateRequest(_CreateRequest):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    slug: str | None = None
    summary: str | None = None
    cover_image: str | None = None
    tags: list[str] = Field(default_factory=list)
    status: ContentStatus = "draft"


class ArticleUpdateRequest(_UpdateRequest):
    title: str | None = None
    content: str | None = None
    slug: str | None = None
    summary: str | None = None
    cover_image: str | None = None
    tags: list[str] | None = None
    status: ContentStatus | None = None


# =============================================================================
# Skills
# =============================================================================


class SkillCreateRequest(_CreateRequest):
    name: str = Field(..., min_length=1)
    category: SkillCategory = "other"
    proficiency: int = Field(3, ge=1, le=5)
    years_of_experience: float | None = None
    icon: str | None = None
    is_primary: bool = False


class SkillUpdateRequest(_UpdateRequest):
    name: str | None = None
    category: SkillCategory | None = None
    proficiency: int | None = Field(None, ge=1, le=5)
    years_of_experience: float | None = None
    icon: str | None = None
    is_primary: bool | None = None


# =============================================================================
# Stories
# =============================================================================


class StoryCreateRequest(_CreateRequest):
    title: str = Field(..., min_length=1)
    situation: str = Field(..., min_length=1)
    task: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    result: str = Field(..., min_length=1)
    skills_demonstrated: list[str] = Field(default_factory=list)
    project_id: str | None = None
    is_public: bool = False
    redacted: bool = False


class StoryUpdateRequest(_UpdateRequest):
    title: str | None = None
    situation: str | None = None
    task: str | None = None
    action: str | None = None
    result: str | None = None
    skills_demonstrated: list[str] | None = None
    project_id: str | None = None
    is_public: bool | None = None
    redacted: bool | None = None


# =============================================================================
# Experiences
# =============================================================================


class ExperienceCreateRequest(_CreateRequest):
    company: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    location: str | None = None
    employment_type: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    summary: str | None = None
    details: str | None = None
    highlights: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    status: ContentStatus = "published"


class ExperienceUpdateRequest(_UpdateRequest):
    company: str | None = None
    role: str | None = None
    location: str | None = None
    employment_type: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    summary: str | None = None
    details: str | None = None
    highlights: list[str] | None = None
    tech_stack: list[str] | None = None
    status: ContentStatus | None = None


# =============================================================================
# Knowledge
# =============================================================================


class KnowledgeTextRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    content: str = ""
    source_type: str = Field("article", alias="sourceType")


class LoginRequest(BaseModel):
    password: str = ""


class TrackEventRequest(BaseModel):
    type: str = ""
    meta: dict[str, Any] = Field(default_factory=dict)


class KnowledgeDeleteRequest(BaseModel):
    """Delete by ``sourceType`` + ``sourceId``, or by legacy ``fileName`` (metadata title)."""

    model_config = ConfigDict(populate_by_name=True)

    source_type: str | None = Field(None, alias="sourceType")
    source_id: str | None = Field(None, alias="sourceId")
    file_name: str | None = Field(None, alias="fileName")
