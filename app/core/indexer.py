"""Keep the ``chunks`` table in sync with portfolio content.

Each ``index_*`` function renders one source row to text, chunks it, embeds the
chunks in batches and replaces that source's chunks (delete then insert, keyed
by ``owner_id, source_type, source_id``).
"""

from typing import Any

from app.core.chunking import chunk_text
from app.core.config import get_settings
from app.core.embeddings import embed_text, embed_texts_batched
from app.core.logging import get_logger
from app.db import chunks as chunks_db
from app.db.errors import is_missing_table
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

INGEST_SOURCE_TYPES = frozenset({"article", "resume", "story", "project", "skill"})
DEFAULT_INGEST_SOURCE_TYPE = "article"


# =============================================================================
# Helpers
# =============================================================================


def _chunk(text: str) -> list[str]:
    settings = get_settings()
    return chunk_text(text, max_chars=settings.CHUNK_MAX_CHARS, min_chars=settings.CHUNK_MIN_CHARS)


def _build_rows(
    owner_id: str,
    source_type: str,
    source_id: str,
    contents: list[str],
    metadata: dict[str, Any],
) -> list[dict[str, Any]]:
    embeddings = embed_texts_batched(contents, batch_size=get_settings().EMBEDDING_BATCH_SIZE)
    return [
        {
            "owner_id": owner_id,
            "source_type": source_type,
            "source_id": str(source_id),
            "content": content,
            "embedding": embeddings[i],
            "metadata": {**metadata, "chunk_index": i, "total_chunks": len(contents)},
        }
        for i, content in enumerate(contents)
    ]


def replace_source_chunks(
    owner_id: str,
    source_type: str,
    source_id: str,
    rows: list[dict[str, Any]],
) -> int:
    """Delete a source's chunks, then insert ``rows``. Returns rows inserted."""
    chunks_db.delete_source_chunks(owner_id, source_type, source_id)
    if not rows:
        return 0
    chunks_db.insert_chunks(rows)
    logger.info(
        f"Indexed {source_type}:{source_id} ({len(rows)} chunks)",
        extra={"source_type": source_type, "source_id": str(source_id), "chunks": len(rows)},
    )
    return len(rows)


def delete_source_chunks(owner_id: str, source_type: str, source_id: str) -> None:
    chunks_db.delete_source_chunks(owner_id, source_type, source_id)


# =============================================================================
# Per-type indexers
# =============================================================================


def index_project(owner_id: str, project: dict[str, Any]) -> int:
    header_lines = [f"Project: {project['title']}"]
    if project.get("subtitle"):
        header_lines.append(f"Subtitle: {project['subtitle']}")
    header = "\n".join(header_lines)

    body_parts = []
    if project.get("description"):
        body_parts.append(f"Overview:\n{project['description']}")
    if project.get("details"):
        body_parts.append(f"Deep dive:\n{project['details']}")

    contents = [f"{header}\n\n{part}" for part in _chunk("\n\n".join(body_parts))]
    rows = _build_rows(
        owner_id,
        "project",
        project["id"],
        contents,
        {"title": project["title"], "slug": project.get("slug")},
    )
    return replace_source_chunks(owner_id, "project", project["id"], rows)


def index_article(owner_id: str, article: dict[str, Any]) -> int:
    contents = [f"Article: {article['title']}\n\n{part}" for part in _chunk(article.get("content") or "")]
    rows = _build_rows(
        owner_id,
        "article",
        article["id"],
        contents,
        {"title": article["title"], "slug": article.get("slug")},
    )
    return replace_source_chunks(owner_id, "article", article["id"], rows)


def index_story(owner_id: str, story: dict[str, Any]) -> int:
    content = (
        f"Story: {story['title']}\n\n"
        f"Situation: {story.get('situation', '')}\n"
        f"Task: {story.get('task', '')}\n"
        f"Action: {story.get('action', '')}\n"
        f"Result: {story.get('result', '')}"
    )
    row = {
        "owner_id": owner_id,
        "source_type": "story",
        "source_id": str(story["id"]),
        "content": content,
        "embedding": embed_text(content),
        "metadata": {"title": story["title"], "story_id": str(story["id"])},
    }
    return replace_source_chunks(owner_id, "story", story["id"], [row])


def render_experience(experience: dict[str, Any]) -> tuple[str, str]:
    """Return ``(title, text)`` for an experience row."""
    title = f"{experience['role']} @ {experience['company']}"

    lines = [f"Experience: {title}"]
    if experience.get("location"):
        lines.append(f"Location: {experience['location']}")
    if experience.get("employment_type"):
        lines.append(f"Type: {experience['employment_type']}")
    if experience.get("start_date") or experience.get("end_date"):
        start = experience.get("start_date") or "n/a"
        end = experience.get("end_date") or "Present"
        lines.append(f"Dates: {start} to {end}")
    if experience.get("tech_stack"):
        lines.append(f"Tech: {', '.join(experience['tech_stack'])}")
    if experience.get("summary"):
        lines.append(f"Summary: {experience['summary']}")
    text = "\n".join(lines)

    highlights = [h for h in (experience.get("highlights") or []) if str(h or "").strip()]
    if highlights:
        text += "\n\nHighlights:\n- " + "\n- ".join(highlights)
    if experience.get("details"):
        text += f"\n\nDetailed narrative:\n{experience['details']}"

    return title, text


def index_experience(owner_id: str, experience: dict[str, Any]) -> int:
    title, text = render_experience(experience)
    rows = _build_rows(owner_id, "experience", experience["id"], _chunk(text), {"title": title})
    return replace_source_chunks(owner_id, "experience", experience["id"], rows)


def index_skill(owner_id: str, skill: dict[str, Any]) -> int:
    lines = [f"Skill: {skill['name']}"]
    if skill.get("category"):
        lines.append(f"Category: {skill['category']}")
    if isinstance(skill.get("proficiency"), int):
        lines.append(f"Proficiency: {skill['proficiency']}/5")
    if skill.get("years_of_experience") is not None:
        lines.append(f"Years: {skill['years_of_experience']}")
    lines.append("Primary: yes" if skill.get("is_primary") else "Primary: no")
    content = "\n".join(lines)

    row = {
        "owner_id": owner_id,
        "source_type": "skill",
        "source_id": str(skill["id"]),
        "content": content,
        "embedding": embed_text(content),
        "metadata": {"title": skill["name"], "skill_id": str(skill["id"])},
    }
    return replace_source_chunks(owner_id, "skill", skill["id"], [row])


def index_resume(owner_id: str, content: str, title: str = "Resume", source_id: str = "resume") -> int:
    contents = [f"Resume: {title}\n\n{part}" for part in _chunk(content)]
    rows = _build_rows(owner_id, "resume", source_id, contents, {"title": title})
    return replace_source_chunks(owner_id, "resume", source_id, rows)


# =============================================================================
# Free-text knowledge ingestion
# =============================================================================


def normalize_ingest_source_type(value: str | None) -> str:
    return value if value in INGEST_SOURCE_TYPES else DEFAULT_INGEST_SOURCE_TYPE


def ingest_text(
    owner_id: str,
    title: str,
    content: str,
    source_type: str | None = None,
    extra_metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Chunk and store a free-text document under ``title``.

    Existing chunks carrying the same ``metadata.title`` are removed first.
    Chunks are embedded and inserted one at a time; a chunk that fails is
    logged and counted, and the rest still go in.

    Args:
        owner_id: Tenant id
        title: Document title, also used as ``source_id``
        content: Raw text
        source_type: One of article/resume/story/project/skill (else article)
        extra_metadata: Merged into every chunk's metadata

    Returns:
        Dict with title, totalChunks, inserted, failed
    """
    resolved_type = normalize_ingest_source_type(source_type)
    chunks_db.delete_chunks_by_title(owner_id, title)

    parts = _chunk(content)
    inserted = 0
    failed = 0

    for i, part in enumerate(parts):
        try:
            chunks_db.insert_chunk(
                {
                    "owner_id": owner_id,
                    "source_type": resolved_type,
                    "source_id": title,
                    "content": part,
                    "embedding": embed_text(part),
                    "metadata": {
                        "title": title,
                        "chunk_index": i,
                        "total_chunks": len(parts),
                        **(extra_metadata or {}),
                    },
                }
            )
            inserted += 1
        except Exception as e:
            logger.error(
                f"Failed to ingest chunk {i} of '{title}': {e}",
                extra={"title": title, "chunk_index": i},
            )
            failed += 1

    logger.info(
        f"Ingested '{title}' as {resolved_type}: {inserted} inserted, {failed} failed",
        extra={"title": title, "source_type": resolved_type, "inserted": inserted, "failed": failed},
    )
    return {"title": title, "totalChunks": len(parts), "inserted": inserted, "failed": failed}


# =============================================================================
# Full rebuild
# =============================================================================


def _fetch(table: str, owner_id: str, columns: str = "*", **filters: Any) -> list[dict[str, Any]]:
    supabase = get_supabase()
    query = supabase.table(table).select(columns).eq("owner_id", owner_id)
    for column, value in filters.items():
        query = query.is_(column, "null") if value is None else query.eq(column, value)
    return query.execute().data or []


def rebuild_all(owner_id: str) -> dict[str, int]:
    """
    Re-index every published source and drop chunks of unpublished ones.

    Skills always index. Stories index only when public. A missing
    ``experiences`` table is skipped.

    Returns:
        Per-type indexed/removed counts
    """
    counts = {
        "projects_indexed": 0,
        "projects_removed": 0,
        "articles_indexed": 0,
        "articles_removed": 0,
        "stories_indexed": 0,
        "stories_removed": 0,
        "skills_indexed": 0,
        "experiences_indexed": 0,
        "experiences_removed": 0,
    }

    projects = _fetch("projects", owner_id, deleted_at=None)
    articles = _fetch("articles", owner_id)
    stories = _fetch("stories", owner_id)
    skills = _fetch("skills", owner_id)

    try:
        experiences: list[dict[str, Any]] | None = _fetch("experiences", owner_id)
    except Exception as e:
        if not is_missing_table(e):
            raise
        logger.warning("experiences table missing, skipping during rebuild")
        experiences = None

    for project in projects:
        if project.get("status") == "published":
            index_project(owner_id, project)
            counts["projects_indexed"] += 1
        else:
            delete_source_chunks(owner_id, "project", project["id"])
            counts["projects_removed"] += 1

    for article in articles:
        if article.get("status") == "published":
            index_article(owner_id, article)
            counts["articles_indexed"] += 1
        else:
            delete_source_chunks(owner_id, "article", article["id"])
            counts["articles_removed"] += 1

    for story in stories:
        if story.get("is_public"):
            index_story(owner_id, story)
            counts["stories_indexed"] += 1
        else:
            delete_source_chunks(owner_id, "story", story["id"])
            counts["stories_removed"] += 1

    for skill in skills:
        index_skill(owner_id, skill)
        counts["skills_indexed"] += 1

    for experience in experiences or []:
        if experience.get("status") == "published":
            index_experience(owner_id, experience)
            counts["experiences_indexed"] += 1
        else:
            delete_source_chunks(owner_id, "experience", experience["id"])
            counts["experiences_removed"] += 1

    logger.info(f"Rebuilt index for owner {owner_id}", extra={"owner_id": owner_id, **counts})
    return counts
