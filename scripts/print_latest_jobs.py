#!/usr/bin/env python3
"""
Print the most recent rows of the scraped_jobs table.

    python scripts/print_latest_jobs.py [LIMIT] [--source NAME] [--db PATH]
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from modules.job_scrape.lib.config import DEFAULT_SQLITE_PATH  # noqa: E402
from modules.job_scrape.lib.db import fetch_jobs  # noqa: E402


def format_timestamp(iso_str: str | None) -> str:
    """ISO timestamp -> readable local time."""
    if not iso_str:
        return "-"
    try:
        dt = datetime.fromisoformat(iso_str.replace("Z", "+00:00"))
    except ValueError:
        return iso_str
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    p.add_argument("limit", nargs="?", type=int, default=15)
    p.add_argument("--source", help="Only rows from this source.")
    p.add_argument("--db", default=os.getenv("JOBS_SQLITE_PATH", DEFAULT_SQLITE_PATH))
    args = p.parse_args(argv)

    if not os.path.exists(args.db):
        print(f"Database not found: {args.db}", file=sys.stderr)
        return 1

    rows = fetch_jobs(args.db, source=args.source, limit=max(1, args.limit))
    if not rows:
        print("No jobs found.")
        return 0

    print(f"DATABASE: {args.db}  ({len(rows)} most recent)")
    print("-" * 80)
    for i, row in enumerate(rows, 1):
        print(f"{i:2d}. {row['title']} @ {row['company']} ({row['location']})")
        print(f"     Source:   {row['source']}  [{row['job_type']}]")
        print(f"     URL:      {row['job_url'] or '-'}")
        print(f"     Posted:   {format_timestamp(row['source_posted_at'])}")
        print(f"     Deadline: {format_timestamp(row['application_deadline'])}")
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
