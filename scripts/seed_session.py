"""
Session Seeding Script.

Fills the configured session store with sample calls so the dashboard
has something to show. Only useful with ``STORE_BACKEND=redis``; the
in-memory store disappears when this script exits.

Usage:
    python scripts/seed_session.py [--count 20] [--reset]
"""

import argparse
import asyncio
import os
import random
import sys

# Add project root to path so we can import call_tracker
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dotenv import load_dotenv
load_dotenv(".env.local")

from call_tracker.config import StoreBackend, get_settings
from call_tracker.logging_config import setup_logging, get_logger
from call_tracker.schemas.outcome import CallOutcome
from call_tracker.services.call_store import create_store

setup_logging()
logger = get_logger(__name__)

SAMPLE_NOTES = [
    None,
    None,
    "try after 5pm",
    "spoke with spouse",
    "asked for brochure by email",
    "closed deal",
    "left voicemail",
]


async def seed(count: int, reset: bool) -> None:
    if get_settings().store_backend != StoreBackend.REDIS:
        logger.warning("seeding_memory_store", detail="records are discarded when the script exits")

    store = create_store()
    await store.initialize()

    try:
        if reset:
            await store.reset()

        outcomes = list(CallOutcome)
        for _ in range(count):
            await store.add(random.choice(outcomes), random.choice(SAMPLE_NOTES))

        stats = await store.stats()
        logger.info(
            "seeding_complete",
            total_calls=stats.total_calls,
            confirmed_sales=stats.confirmed_sales,
            yes_ratio=round(stats.yes_ratio, 1),
        )
    finally:
        await store.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the call session with sample calls")
    parser.add_argument("--count", type=int, default=20, help="Number of calls to log")
    parser.add_argument("--reset", action="store_true", help="Start a new session before seeding")
    args = parser.parse_args()

    asyncio.run(seed(args.count, args.reset))


if __name__ == "__main__":
    main()
