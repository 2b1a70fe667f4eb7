"""Rebuild every chunk for one owner from the content tables.

Usage:
    python scripts/rebuild_index.py [--owner-id <uuid>]
"""

import argparse
import sys

from app.core.config import get_settings
from app.core.indexer import rebuild_all


def main() -> int:
    parser = argparse.ArgumentParser(description="Rebuild the chunk index")
    parser.add_argument("--owner-id", default=None, help="Owner id (defaults to DEFAULT_OWNER_ID)")
    args = parser.parse_args()

    owner_id = args.owner_id or get_settings().DEFAULT_OWNER_ID
    print(f"Rebuilding chunk index for {owner_id}...")

    counts = rebuild_all(owner_id)
    for key, value in counts.items():
        print(f"  {key}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
