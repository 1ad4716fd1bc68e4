#!/usr/bin/env python3
"""
Create the PostgreSQL cache table and optionally purge expired rows.

Usage:
    DATABASE_URL=postgresql://... python scripts/init_cache_schema.py [--purge]
"""
import argparse
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from archery import cache_pg  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--purge", action="store_true", help="delete expired cache rows")
    args = parser.parse_args(argv)

    if not os.environ.get("DATABASE_URL"):
        print("ERROR: DATABASE_URL environment variable not set")
        return 1

    store = cache_pg.PgCache()
    store.ensure_schema()
    print(f"Table {cache_pg.CACHE_TABLE} ready")
    if args.purge:
        removed = store.purge_expired()
        print(f"Removed {removed} expired rows")
    print(f"Live entries: {store.describe().get('entries')}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
