"""Articles database operations."""

from datetime import UTC, datetime
from typing import Any

from app.core.logging import get_logger
from app.db.content_rows import insert_with_auto_slug, resolve_update_slug
from app.db.errors import maybe_single
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "articles"


def list_articles(owner_id: str, published_only: bool = True) -> list[dict[str, Any]]:
    """
    List articles.

    Public listings are published articles, newest publication first; the admin
    listing is every article, newest created first.
    """
    supabase = get_supabase()
    query = supabase.table(TABLE).select("*").eq("owner_id", owner_id)
    if published_only:
        query = query.eq("status", "published").order("published_at", desc=True)
    else:
        query = query.order("created_at", desc=True)
    response = query.execute()
    return response.data or []


def get_article_by_slug(owner_id: str, slug: str) -> dict[str, Any] | None:
    """Get a published article by slug."""
    supabase = get_supabase()
    return maybe_single(
        supabase.table(TABLE)
        .select("*")
        .eq("owner_id", owner_id)
        .eq("status", "published")
        .eq("slug", slug)
    )


def get_article(owner_id: str, article_id: str) -> dict[str, Any] | None:
    supabase = get_supabase()
    return maybe_single(
        supabase.table(TABLE).select("*").eq("id", article_id).eq("owner_id", owner_id)
    )


def create_article(owner_id: str, data: dict[str, Any], slug: str | None = None) -> dict[str, Any]:
    """
    Create an article, stamping ``published_at`` when created as published.

    Raises:
        SlugConflictError: If a provided slug is taken
    """
    row = dict(data)
    row["status"] = row.get("status") or "draft"
    row["published_at"] = datetime.now(UTC).isoformat() if row["status"] == "published" else None

    article = insert_with_auto_slug(
        TABLE,
        owner_id,
        row,
        title=row.get("title", ""),
        slug=slug,
        fallback_prefix="article",
    )
    logger.info(
        f"Created article {article['id']}: {article.get('title')}",
        extra={"article_id": article["id"], "slug": article.get("slug")},
    )
    return article


def update_article(owner_id: str, article_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    """
    Update an article; the first transition to published sets ``published_at``.

    Returns:
        Updated row, or None when no row matched

    Raises:
        SlugConflictError: If the new slug belongs to another article
    """
    supabase = get_supabase()
    updates = dict(updates)

    if updates.get("status") == "published":
        existing = get_article(owner_id, article_id)
        if not (existing or {}).get("published_at"):
            updates["published_at"] = datetime.now(UTC).isoformat()
    elif not updates.get("status"):
        updates.pop("status", None)

    resolve_update_slug(TABLE, owner_id, article_id, updates)
    updates["updated_at"] = datetime.now(UTC).isoformat()

    response = (
        supabase.table(TABLE)
        .update(updates)
        .eq("id", article_id)
        .eq("owner_id", owner_id)
        .execute()
    )
    return response.data[0] if response.data else None


def delete_article(owner_id: str, article_id: str) -> None:
    supabase = get_supabase()
    supabase.table(TABLE).delete().eq("id", article_id).eq("owner_id", owner_id).execute()
    logger.info(f"Deleted article {article_id}", extra={"article_id": article_id})
