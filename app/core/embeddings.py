"""OpenAI embeddings generation with validation and batching."""

import asyncio
from typing import Any

from openai import OpenAI

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_BATCH_SIZE = 128


def _get_client() -> OpenAI:
    """Get OpenAI client instance."""
    settings = get_settings()
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def _input_position(pair: tuple[int, Any]) -> int:
    position, item = pair
    index = getattr(item, "index", None)
    return index if isinstance(index, int) else position


def embed_texts(texts: list[str]) -> list[list[float]]:
    """
    Generate embeddings for a list of texts using OpenAI.

    Args:
        texts: List of text strings to embed

    Returns:
        List of embedding vectors, in the same order as ``texts``

    Raises:
        ValueError: If embedding dimension doesn't match expected EMBEDDING_DIM
        Exception: If OpenAI API call fails
    """
    if not texts:
        return []

    settings = get_settings()
    client = _get_client()

    try:
        response = client.embeddings.create(
            model=settings.EMBEDDING_MODEL,
            input=texts,
            dimensions=settings.EMBEDDING_DIM,
        )

        # The API reports each vector's input position; don't trust list order
        ordered = [item for _, item in sorted(enumerate(response.data), key=_input_position)]

        embeddings = []
        for i, embedding_obj in enumerate(ordered):
            embedding = embedding_obj.embedding

            if len(embedding) != settings.EMBEDDING_DIM:
                raise ValueError(
                    f"Embedding dimension mismatch for text {i}: "
                    f"expected {settings.EMBEDDING_DIM}, got {len(embedding)}"
                )

            embeddings.append(embedding)

        if len(embeddings) != len(texts):
            raise ValueError(
                f"Embedding count mismatch: sent {len(texts)} texts, got {len(embeddings)} vectors"
            )

        logger.info(
            f"Generated {len(embeddings)} embeddings using {settings.EMBEDDING_MODEL}",
            extra={"model": settings.EMBEDDING_MODEL, "count": len(embeddings)},
        )

        return embeddings

    except Exception as e:
        logger.error(f"Failed to generate embeddings: {e}")
        raise


def embed_text(text: str) -> list[float]:
    """Embed a single text."""
    return embed_texts([text])[0]


def embed_texts_batched(texts: list[str], batch_size: int = 32) -> list[list[float]]:
    """
    Embed texts in fixed-size batches, preserving input order.

    Args:
        texts: Texts to embed
        batch_size: Texts per request, clamped to [1, 128]

    Returns:
        One vector per input text
    """
    if not texts:
        return []

    safe_batch = max(1, min(batch_size, MAX_BATCH_SIZE))
    out: list[list[float]] = []

    for start in range(0, len(texts), safe_batch):
        out.extend(embed_texts(texts[start : start + safe_batch]))

    return out


async def embed_texts_async(texts: list[str]) -> list[list[float]]:
    """Async wrapper around embed_texts using thread pool."""
    return await asyncio.to_thread(embed_texts, texts)
