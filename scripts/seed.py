#!/usr/bin/env python3
"""Normalize the upstream review payload and persist it into the review store.

Safe to run repeatedly: existing reviews are refreshed but keep their
approval flag.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from flex_reviews.clients.hostaway import HostawayClient, extract_review_items
from flex_reviews.config import get_settings
from flex_reviews.services.reviews import ReviewService
from flex_reviews.services.store import ReviewRepository


async def run_seed(source: str | None, store_path: str) -> int:
    settings = get_settings()
    client = HostawayClient(
        settings.hostaway_base_url,
        account_id=settings.hostaway_account_id,
        api_key=settings.hostaway_api_key,
        timeout=settings.hostaway_timeout,
        use_mock_data=settings.use_mock_data,
        mock_data_path=settings.mock_data_path,
    )
    service = ReviewService(client, repository=ReviewRepository(store_path))
    try:
        if source:
            with open(source, encoding="utf-8") as handle:
                raws = extract_review_items(json.load(handle))
            return await service.seed(raws)
        return await service.seed()
    finally:
        await client.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Seed the review store from Hostaway (or a JSON file)."
    )
    parser.add_argument(
        "--source",
        default=None,
        help="JSON file with a review list or a {\"result\": [...]} envelope. "
        "Defaults to the configured Hostaway source.",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Path of the JSON review store. Defaults to FLEX_STORE_PATH.",
    )

    args = parser.parse_args(argv)
    store_path = args.store or get_settings().store_path
    if not store_path:
        print("No store path given; pass --store or set FLEX_STORE_PATH.", file=sys.stderr)
        return 2

    try:
        count = asyncio.run(run_seed(args.source, store_path))
    except Exception as exc:  # pragma: no cover - manual utility
        print(f"Seeding failed: {exc}", file=sys.stderr)
        return 1

    print(f"Seeded {count} reviews.")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual utility
    raise SystemExit(main())
