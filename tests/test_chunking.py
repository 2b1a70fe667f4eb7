"""Tests for paragraph-bounded text chunking."""

import pytest

from app.core.chunking import chunk_text


def _para(char: str, length: int) -> str:
    return char * length


def test_chunk_text_empty():
    """Empty and whitespace-only input produce no chunks."""
    assert chunk_text("") == []
    assert chunk_text(None) == []
    assert chunk_text("   \n\n  ") == []


def test_chunk_text_short_text_dropped():
    """Text under min_chars is dropped entirely."""
    assert chunk_text("too short", max_chars=1000, min_chars=50) == []


def test_chunk_text_single_paragraph():
    text = "This paragraph is comfortably longer than the fifty character minimum."
    assert chunk_text(text) == [text]


def test_chunk_text_packs_paragraphs_until_budget():
    """Paragraphs join with blank lines while they fit, then start a new chunk."""
    a, b, c = _para("a", 60), _para("b", 60), _para("c", 60)
    chunks = chunk_text(f"{a}\n\n{b}\n\n{c}", max_chars=130, min_chars=10)

    # a + "\n\n" + b is 122 chars; adding c would need 184
    assert chunks == [f"{a}\n\n{b}", c]


def test_chunk_text_flush_accounts_for_separator():
    """The two-char separator counts toward the budget."""
    a, b = _para("a", 60), _para("b", 60)

    assert chunk_text(f"{a}\n\n{b}", max_chars=121, min_chars=10) == [a, b]
    assert chunk_text(f"{a}\n\n{b}", max_chars=122, min_chars=10) == [f"{a}\n\n{b}"]


def test_chunk_text_hard_splits_long_paragraph():
    """A paragraph over max_chars flushes the buffer and is sliced."""
    intro = _para("i", 40)
    long_para = _para("x", 250)
    chunks = chunk_text(f"{intro}\n\n{long_para}", max_chars=100, min_chars=10)

    assert chunks == [intro, "x" * 100, "x" * 100, "x" * 50]


def test_chunk_text_drops_short_tail_slice():
    chunks = chunk_text(_para("x", 205), max_chars=100, min_chars=10)
    assert chunks == ["x" * 100, "x" * 100]


def test_chunk_text_falls_back_to_lines():
    """Single-paragraph text with line breaks is chunked line by line."""
    lines = [_para(ch, 30) for ch in "abcd"]
    chunks = chunk_text("\n".join(lines), max_chars=70, min_chars=10)

    assert chunks == [f"{lines[0]}\n\n{lines[1]}", f"{lines[2]}\n\n{lines[3]}"]


def test_chunk_text_normalizes_crlf():
    a, b = _para("a", 60), _para("b", 60)
    assert chunk_text(f"{a}\r\n\r\n{b}", max_chars=80, min_chars=10) == [a, b]


def test_chunk_text_bounds_hold():
    """No chunk exceeds max_chars or falls below min_chars."""
    text = "\n\n".join(_para(ch, n) for ch, n in zip("abcdefg", [10, 300, 45, 80, 5, 120, 60]))
    chunks = chunk_text(text, max_chars=100, min_chars=20)

    assert chunks
    assert all(20 <= len(chunk) <= 100 for chunk in chunks)


def test_chunk_text_deterministic():
    text = "\n\n".join(f"Paragraph {i} " + "word " * (i * 7) for i in range(20))
    assert chunk_text(text, max_chars=200, min_chars=30) == chunk_text(text, max_chars=200, min_chars=30)


def test_chunk_text_invalid_params():
    """Invalid parameters raise ValueError."""
    with pytest.raises(ValueError, match="must be positive"):
        chunk_text("text", max_chars=0, min_chars=0)

    with pytest.raises(ValueError, match="must be >= min_chars"):
        chunk_text("text", max_chars=10, min_chars=20)
