"""Hybrid chunk retrieval: full-text + vector search fused with RRF.

Usage:
    from app.core.retrieval import retrieve_context

    result = await retrieve_context(owner_id, "What did you build with FastAPI?", top_k=12)
    result.chunks   # list[ChunkReference], best first
    result.context  # prompt-ready SOURCE blocks
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, field
from typing import Any

from app.core.config import get_settings
from app.core.embeddings import embed_texts_async
from app.core.logging import get_logger
from app.db import chunks as chunks_db

logger = get_logger(__name__)

RRF_K = 60
MATCH_THRESHOLD = 0.3
FALLBACK_MATCH_THRESHOLD = 0.0
MAX_SOURCE_CONTEXT_CHARS = 1800


# =============================================================================
# Result Model
# =============================================================================


@dataclass
class ChunkReference:
    """One retrieved chunk as cited to the user."""

    chunk_id: str
    source_type: str
    source_title: str
    source_id: str
    source_slug: str | None = None
    relevance_score: float = 0.0
    content_preview: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RetrievalResult:
    chunks: list[ChunkReference] = field(default_factory=list)
    context: str = ""


# =============================================================================
# Formatting
# =============================================================================


def to_public_url(path: str) -> str:
    if not path or path.startswith(("http://", "https://")):
        return path
    base = get_settings().PUBLIC_SITE_URL.rstrip("/")
    return f"{base}{'' if path.startswith('/') else '/'}{path}"


def source_href(source_type: str, slug: str | None = None) -> str | None:
    """Public URL for a cited source, or None when it has no page."""
    if source_type == "article" and slug:
        return to_public_url(f"/articles/{slug}")
    if source_type == "project" and slug:
        return to_public_url(f"/projects/{slug}")
    fixed = {
        "experience": "/experience",
        "resume": "/api/resume",
        "story": "/stories",
        "skill": "/skills",
    }
    path = fixed.get(source_type)
    return to_public_url(path) if path else None


def build_snippet(content: str | None) -> str:
    normalized = (content or "").strip()
    if len(normalized) <= MAX_SOURCE_CONTEXT_CHARS:
        return normalized
    return f"{normalized[:MAX_SOURCE_CONTEXT_CHARS]}…"


def format_context(chunks: list[ChunkReference]) -> str:
    blocks = []
    for idx, ref in enumerate(chunks, start=1):
        slug_part = f" (slug: {ref.source_slug})" if ref.source_slug else ""
        url = source_href(ref.source_type, ref.source_slug)
        url_line = f"\nURL: {url}" if url else ""
        blocks.append(
            f"SOURCE {idx}\nType: {ref.source_type}\nTitle: {ref.source_title}{slug_part}"
            f"{url_line}\nSnippet: {ref.content_preview}"
        )
    return "\n\n".join(blocks)


# =============================================================================
# Fusion
# =============================================================================


def fuse_results(
    vector_results: list[dict[str, Any]],
    fts_results: list[dict[str, Any]],
    top_k: int,
) -> list[ChunkReference]:
    """
    Reciprocal Rank Fusion of two ranked chunk lists.

    Each list contributes ``1 / (60 + rank)`` (rank starting at 1). A chunk in
    both lists sums its scores and merges its fields, FTS metadata winning.
    """
    scored: dict[str, tuple[float, dict[str, Any]]] = {}

    for rank, chunk in enumerate(vector_results, start=1):
        scored[str(chunk["id"])] = (1 / (RRF_K + rank), chunk)

    for rank, chunk in enumerate(fts_results, start=1):
        chunk_id = str(chunk["id"])
        score = 1 / (RRF_K + rank)
        if chunk_id in scored:
            existing_score, existing = scored[chunk_id]
            merged = {
                **existing,
                **chunk,
                "metadata": {**(existing.get("metadata") or {}), **(chunk.get("metadata") or {})},
            }
            scored[chunk_id] = (existing_score + score, merged)
        else:
            scored[chunk_id] = (score, chunk)

    ranked = sorted(scored.values(), key=lambda pair: pair[0], reverse=True)[:top_k]

    refs = []
    for score, chunk in ranked:
        metadata = chunk.get("metadata") or {}
        refs.append(
            ChunkReference(
                chunk_id=str(chunk["id"]),
                source_type=chunk.get("source_type", ""),
                source_title=metadata.get("title") or "Unknown Source",
                source_id=str(chunk.get("source_id", "")),
                source_slug=metadata.get("slug"),
                relevance_score=score,
                content_preview=build_snippet(chunk.get("content")),
            )
        )
    return refs


# =============================================================================
# Search
# =============================================================================


async def _search_fulltext(
    owner_id: str, query: str, top_k: int, source_types: list[str] | None
) -> list[dict[str, Any]]:
    try:
        return await asyncio.to_thread(
            chunks_db.search_chunks_fulltext, owner_id, query, top_k, source_types
        )
    except Exception as e:
        logger.error(f"FTS search error: {e}")
        return []


async def _search_vector(
    owner_id: str,
    embedding: list[float],
    threshold: float,
    top_k: int,
    source_types: list[str] | None,
) -> list[dict[str, Any]] | None:
    """Vector search; None signals an error (distinct from no matches)."""
    try:
        return await asyncio.to_thread(
            chunks_db.match_chunks, owner_id, embedding, threshold, top_k, source_types
        )
    except Exception as e:
        logger.error(f"Vector search error: {e}")
        return None


async def retrieve_context(
    owner_id: str,
    query: str,
    top_k: int = 5,
    source_types: list[str] | None = None,
) -> RetrievalResult:
    """
    Retrieve the best chunks for ``query``.

    Full-text and vector search run concurrently. When both come back empty
    (or vector search failed with no FTS hits) vector search is retried with a
    0.0 threshold so short, broad questions still find evidence.

    Args:
        owner_id: Tenant id
        query: Search text
        top_k: Maximum chunks returned
        source_types: Optional source type filter

    Returns:
        RetrievalResult with ranked references and the prompt context block

    Raises:
        Exception: If embedding the query fails
    """
    fts_task = asyncio.create_task(_search_fulltext(owner_id, query, top_k, source_types))
    try:
        embedding = (await embed_texts_async([query]))[0]
    except Exception:
        fts_task.cancel()
        raise

    vector_results, fts_results = await asyncio.gather(
        _search_vector(owner_id, embedding, MATCH_THRESHOLD, top_k, source_types),
        fts_task,
    )

    if not fts_results and not vector_results:
        retry = await _search_vector(owner_id, embedding, FALLBACK_MATCH_THRESHOLD, top_k, source_types)
        if retry:
            logger.debug(f"Low-threshold vector retry found {len(retry)} chunks")
            vector_results = retry

    chunks = fuse_results(vector_results or [], fts_results, top_k)
    logger.info(
        f"Retrieved {len(chunks)} chunks",
        extra={"top_k": top_k, "fts": len(fts_results), "vector": len(vector_results or [])},
    )
    return RetrievalResult(chunks=chunks, context=format_context(chunks))
