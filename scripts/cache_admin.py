#!/usr/bin/env python3
"""
Matrimony Matching — Cache Admin: score-cache statistics and purges

Operator script for the Redis score cache.  Provides three subcommands:

  stats            — Count cached match scores and view-suppression keys.
  clear            — Delete every cached match score.
  invalidate-user  — Purge cached scores where a user is seeker or candidate.

Usage examples
--------------
  # Show key counts
  python scripts/cache_admin.py stats

  # Drop all cached scores (e.g. after changing SCORE_WEIGHTS)
  python scripts/cache_admin.py clear --yes

  # Purge one user's scores in both directions
  python scripts/cache_admin.py invalidate-user 2f0c7a3e-...
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid

# Ensure the project root is importable
sys.path.insert(0, ".")

from matrimony.config import get_settings
from matrimony.services.score_cache import RedisCacheStore, ScoreCache


def _build_cache() -> tuple[RedisCacheStore, ScoreCache]:
    store = RedisCacheStore()
    return store, ScoreCache(store, get_settings().MATCH_SCORE_CACHE_TTL)


# ──────────────────────────────────────────────────────────────────────────────
# Subcommands
# ──────────────────────────────────────────────────────────────────────────────

async def cmd_stats(args: argparse.Namespace) -> None:
    """Report how many score and view-suppression keys are cached."""
    store, cache = _build_cache()
    try:
        stats = await cache.stats()
    finally:
        await store.close()

    if args.json:
        print(json.dumps(stats, indent=2))
        return

    print(f"\n{'=' * 40}")
    print(f"  Score Cache Statistics")
    print(f"{'=' * 40}")
    print(f"  Match scores:         {stats['match_scores']}")
    print(f"  Profile-view keys:    {stats['profile_views']}")
    print(f"  Score TTL (seconds):  {get_settings().MATCH_SCORE_CACHE_TTL}")
    print(f"{'=' * 40}\n")


async def cmd_clear(args: argparse.Namespace) -> None:
    """Delete every ``match_score:*`` key."""
    if not args.yes:
        print("Refusing to clear the score cache without --yes.")
        sys.exit(2)
    store, cache = _build_cache()
    try:
        deleted = await cache.clear_all()
    finally:
        await store.close()
    print(f"Deleted {deleted} cached match scores.")


async def cmd_invalidate_user(args: argparse.Namespace) -> None:
    """Purge every cached score involving one user."""
    store, cache = _build_cache()
    try:
        deleted = await cache.invalidate_all_for_user(args.user_id)
    finally:
        await store.close()
    print(f"Deleted {deleted} cached match scores for user {args.user_id}.")


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Matrimony Cache Admin — score-cache statistics and purges.",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available subcommands",
    )

    # ── stats ─────────────────────────────────────────────────────────
    stats_parser = subparsers.add_parser(
        "stats",
        help="Count cached match scores and view-suppression keys.",
    )
    stats_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output raw JSON instead of a table.",
    )

    # ── clear ─────────────────────────────────────────────────────────
    clear_parser = subparsers.add_parser(
        "clear",
        help="Delete every cached match score.",
    )
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        default=False,
        help="Confirm the purge.",
    )

    # ── invalidate-user ───────────────────────────────────────────────
    invalidate_parser = subparsers.add_parser(
        "invalidate-user",
        help="Purge cached scores where the user is seeker or candidate.",
    )
    invalidate_parser.add_argument(
        "user_id",
        type=uuid.UUID,
        help="UUID of the user whose scores should be purged.",
    )

    args = parser.parse_args()

    if args.command == "stats":
        asyncio.run(cmd_stats(args))
    elif args.command == "clear":
        asyncio.run(cmd_clear(args))
    elif args.command == "invalidate-user":
        asyncio.run(cmd_invalidate_user(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
