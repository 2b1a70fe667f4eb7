"""Seed published articles (and their chunks) from markdown files.

Usage:
    python scripts/seed_knowledge.py [--bank-dir bank] [--owner-id <uuid>]

Each ``*.md`` file becomes a published article. The first ``# heading`` is the
title (else the file name) and its slug is the upsert key, so re-running
refreshes articles instead of duplicating them.
"""

import argparse
import re
import sys
from pathlib import Path

from app.core import indexer
from app.core.config import get_settings
from app.core.slugs import slugify
from app.db import articles as articles_db
from app.db.content_rows import find_id_by_slug

HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def article_title(path: Path, content: str) -> str:
    match = HEADING_RE.search(content)
    return match.group(1).strip() if match else path.stem


def seed_file(owner_id: str, path: Path) -> int:
    """Upsert one markdown file as a published article; returns its chunk count."""
    content = path.read_text(encoding="utf-8")
    title = article_title(path, content)
    slug = slugify(title) or slugify(path.stem) or "article"

    existing_id = find_id_by_slug(articles_db.TABLE, owner_id, slug)
    if existing_id:
        article = articles_db.update_article(
            owner_id, existing_id, {"title": title, "content": content, "status": "published"}
        )
    else:
        article = articles_db.create_article(
            owner_id,
            {"title": title, "content": content, "summary": None, "tags": [], "status": "published"},
            slug=slug,
        )

    return indexer.index_article(owner_id, article)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed articles from markdown files")
    parser.add_argument("--bank-dir", type=Path, default=Path("bank"), help="Directory of .md files")
    parser.add_argument("--owner-id", default=None, help="Owner id (defaults to DEFAULT_OWNER_ID)")
    args = parser.parse_args()

    owner_id = args.owner_id or get_settings().DEFAULT_OWNER_ID
    files = sorted(args.bank_dir.glob("*.md"))
    if not files:
        print(f"No markdown files found in {args.bank_dir}")
        return 1

    print(f"Seeding {len(files)} files from {args.bank_dir}...\n")
    failures = 0
    for path in files:
        try:
            count = seed_file(owner_id, path)
            print(f"  ✓ {path.name}: {count} chunks")
        except Exception as e:
            failures += 1
            print(f"  ✗ {path.name}: {e}")

    print(f"\nDone. {len(files) - failures} seeded, {failures} failed.")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
