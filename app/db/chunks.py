"""Knowledge chunk storage and search (``chunks`` table + ``match_chunks`` RPC)."""

from typing import Any

from app.core.logging import get_logger
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "chunks"

SOURCE_TYPES = ("project", "article", "resume", "story", "skill", "experience")


def insert_chunks(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Insert chunk rows in one request.

    Args:
        rows: Rows with owner_id, source_type, source_id, content, embedding, metadata

    Returns:
        Inserted rows
    """
    if not rows:
        return []

    supabase = get_supabase()
    response = supabase.table(TABLE).insert(rows).execute()
    inserted = response.data or []
    logger.debug(f"Inserted {len(inserted)} chunks", extra={"count": len(inserted)})
    return inserted


def insert_chunk(row: dict[str, Any]) -> dict[str, Any]:
    inserted = insert_chunks([row])
    if not inserted:
        raise ValueError("No data returned from insert_chunk")
    return inserted[0]


def delete_source_chunks(owner_id: str, source_type: str, source_id: str) -> None:
    """Delete every chunk of one source."""
    supabase = get_supabase()
    (
        supabase.table(TABLE)
        .delete()
        .eq("owner_id", owner_id)
        .eq("source_type", source_type)
        .eq("source_id", str(source_id))
        .execute()
    )
    logger.debug(
        f"Deleted chunks for {source_type}:{source_id}",
        extra={"source_type": source_type, "source_id": str(source_id)},
    )


def delete_chunks_by_title(owner_id: str, title: str, source_type: str | None = None) -> None:
    """Delete chunks whose ``metadata.title`` equals ``title``."""
    supabase = get_supabase()
    query = supabase.table(TABLE).delete().eq("owner_id", owner_id).eq("metadata->>title", title)
    if source_type:
        query = query.eq("source_type", source_type)
    query.execute()


def list_chunk_summaries(owner_id: str) -> list[dict[str, Any]]:
    """All chunks without content/embedding, newest first."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("id, source_type, source_id, metadata, created_at")
        .eq("owner_id", owner_id)
        .order("created_at", desc=True)
        .execute()
    )
    return response.data or []


def count_chunks(owner_id: str, source_type: str | None = None) -> int:
    supabase = get_supabase()
    query = supabase.table(TABLE).select("id", count="exact").eq("owner_id", owner_id)
    if source_type:
        query = query.eq("source_type", source_type)
    response = query.limit(1).execute()
    return response.count or 0


def search_chunks_fulltext(
    owner_id: str,
    query: str,
    limit: int,
    source_types: list[str] | None = None,
) -> list[dict[str, Any]]:
    """
    Websearch-style full-text search over chunks.

    Searches the generated ``fts_content`` column and falls back to ``content``
    when that column is unavailable.
    """
    supabase = get_supabase()

    def _search(column: str) -> list[dict[str, Any]]:
        builder = supabase.table(TABLE).select("*").eq("owner_id", owner_id)
        if source_types:
            builder = builder.in_("source_type", source_types)
        response = (
            builder.text_search(column, query, options={"type": "websearch", "config": "english"})
            .limit(limit)
            .execute()
        )
        return response.data or []

    try:
        return _search("fts_content")
    except Exception as e:
        logger.debug(f"fts_content search failed, falling back to content: {e}")
        return _search("content")


def match_chunks(
    owner_id: str,
    query_embedding: list[float],
    match_threshold: float,
    match_count: int,
    source_types: list[str] | None = None,
) -> list[dict[str, Any]]:
    """
    Cosine similarity search through the ``match_chunks`` SQL function.

    If the call with ``p_source_types`` fails (older function signature) it is
    retried without the type filter.
    """
    supabase = get_supabase()
    base_params = {
        "query_embedding": query_embedding,
        "match_threshold": match_threshold,
        "match_count": match_count,
        "p_owner_id": owner_id,
    }

    if not source_types:
        return supabase.rpc("match_chunks", base_params).execute().data or []

    try:
        params = {**base_params, "p_source_types": source_types}
        return supabase.rpc("match_chunks", params).execute().data or []
    except Exception as e:
        logger.warning(f"match_chunks with source types failed, retrying without: {e}")
        return supabase.rpc("match_chunks", base_params).execute().data or []
