"""Recompute cached powerful scores and print what matters now.

Usage:
    python -m tools.rescore [--top N]

Options:
    --top N   Number of powerful thoughts to list (default: 3).
"""

import argparse
import asyncio
import logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


async def main(top: int):
    # Import here so dotenv is loaded before anything else
    from thouthy.models.thought import init_db
    from thouthy.services.powerful_score import get_powerful_thoughts
    from thouthy.services.store import get_thought_store

    await init_db()
    store = get_thought_store()

    updated = await store.refresh_powerful_scores()
    records = await store.load_records()
    logger.info("Scored %d thoughts, %d changed", len(records), updated)

    logger.info("=" * 60)
    logger.info("WHAT MATTERS NOW")
    logger.info("=" * 60)
    for record in get_powerful_thoughts(records, top):
        pin = "*" if record.is_powerful else " "
        logger.info("%s %3d  %s", pin, record.powerful_score or 0, record.original_text[:70])
    logger.info("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--top", type=int, default=3)
    args = parser.parse_args()
    asyncio.run(main(args.top))
