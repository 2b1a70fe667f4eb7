#!/usr/bin/env python3
"""Apply a SQL migration file to the database at DATABASE_URL.

Usage:
    python3 run_migration.py migrations/001_portfolio_schema.sql
"""

import argparse
import os
import sys
from pathlib import Path

import psycopg2


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a SQL migration file")
    parser.add_argument("migration_file", type=Path, help="Path to the .sql file")
    args = parser.parse_args()

    sql = args.migration_file.read_text()
    print(f"📄 Migration file: {args.migration_file}")
    print(f"📊 Content length: {len(sql)} bytes\n")

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("❌ DATABASE_URL environment variable not set")
        print("   Or paste the file into the Supabase SQL editor instead.")
        return 1

    try:
        print("🔌 Connecting to database...")
        with psycopg2.connect(database_url) as conn, conn.cursor() as cursor:
            print("🚀 Executing migration...\n")
            cursor.execute(sql)
        print("✅ Migration complete!")
        return 0

    except Exception as e:
        print(f"❌ Error running migration: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
