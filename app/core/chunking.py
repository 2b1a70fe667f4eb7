"""Paragraph-bounded text chunking for the knowledge index."""

import re

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")
_LINE_BREAK = re.compile(r"\n+")


def _split_units(text: str) -> list[str]:
    """Split text into paragraphs, falling back to lines for single-paragraph text."""
    paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(text)]
    paragraphs = [p for p in paragraphs if p]
    if len(paragraphs) > 1:
        return paragraphs

    lines = [line.strip() for line in _LINE_BREAK.split(text)]
    return [line for line in lines if line]


def chunk_text(
    text: str | None,
    max_chars: int = 1000,
    min_chars: int = 50,
) -> list[str]:
    """
    Split text into paragraph-bounded chunks under a character budget.

    Paragraphs (blank-line separated) are accumulated into a buffer joined by
    blank lines until the next one would overflow ``max_chars``. A single
    paragraph longer than ``max_chars`` is hard-split. Chunks shorter than
    ``min_chars`` after stripping are dropped.

    Args:
        text: Text to chunk
        max_chars: Maximum characters per chunk
        min_chars: Minimum characters for a chunk to be kept

    Returns:
        List of chunk strings, in document order

    Raises:
        ValueError: If max_chars is not positive or smaller than min_chars
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars ({max_chars}) must be positive")
    if max_chars < min_chars:
        raise ValueError(f"max_chars ({max_chars}) must be >= min_chars ({min_chars})")

    normalized = (text or "").replace("\r\n", "\n").strip()
    if not normalized:
        return []

    chunks: list[str] = []
    buffer = ""

    def flush() -> None:
        nonlocal buffer
        trimmed = buffer.strip()
        if len(trimmed) >= min_chars:
            chunks.append(trimmed)
        buffer = ""

    for unit in _split_units(normalized):
        if len(unit) > max_chars:
            if buffer:
                flush()
            for start in range(0, len(unit), max_chars):
                piece = unit[start : start + max_chars].strip()
                if len(piece) >= min_chars:
                    chunks.append(piece)
            continue

        if buffer and len(buffer) + len(unit) + 2 > max_chars:
            flush()

        buffer = f"{buffer}\n\n{unit}" if buffer else unit

    if buffer:
        flush()

    return chunks
