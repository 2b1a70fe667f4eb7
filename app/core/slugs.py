"""URL slug generation with bounded uniqueness retries."""

import re
import time
import uuid
from collections.abc import Callable

MAX_SLUG_LENGTH = 80
MAX_SUFFIX_ATTEMPTS = 25

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str | None) -> str:
    """Lowercase, collapse non-alphanumerics to dashes, trim, cap at 80 chars."""
    slug = _NON_ALNUM.sub("-", (value or "").lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].strip("-")


def fallback_slug(prefix: str) -> str:
    """Slug used when a title slugifies to nothing."""
    return f"{prefix}-{int(time.time() * 1000)}"


def ensure_unique_slug(
    base: str,
    slug_exists: Callable[[str], bool],
    fallback_prefix: str = "item",
) -> str:
    """
    Find a free slug by suffixing ``-2``, ``-3``, ... onto ``base``.

    Tries at most 25 suffixes, truncating ``base`` so the result stays within
    80 characters. If every candidate is taken, returns ``base`` (cut to 60
    characters) plus 8 random hex characters.

    Args:
        base: Slug that already collided
        slug_exists: Lookup returning True when a slug is taken
        fallback_prefix: Prefix used when ``base`` is empty

    Returns:
        A slug that ``slug_exists`` reported free, or the random fallback
    """
    normalized_base = base or fallback_slug(fallback_prefix)

    for attempt in range(1, MAX_SUFFIX_ATTEMPTS + 1):
        suffix = f"-{attempt + 1}"
        candidate = f"{normalized_base[: MAX_SLUG_LENGTH - len(suffix)]}{suffix}"
        if not slug_exists(candidate):
            return candidate

    return f"{normalized_base[:60]}-{uuid.uuid4().hex[:8]}"
