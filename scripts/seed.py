"""
Seed the database.

Run:
    python scripts/seed.py up        # insert the demo user
    python scripts/seed.py down      # remove the demo user
    python scripts/seed.py catalog   # admin account, categories and books

Expects the schema to exist already (alembic upgrade head).
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bookstore.core.database import engine, get_db_session
from bookstore.db.seed import seed_catalog, seed_demo_user, unseed_demo_user

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def run(action: str) -> None:
    try:
        async with get_db_session() as db:
            if action == "up":
                await seed_demo_user(db)
            elif action == "down":
                await unseed_demo_user(db)
            else:
                await seed_catalog(db)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed or unseed bookstore data")
    parser.add_argument("action", choices=["up", "down", "catalog"])
    args = parser.parse_args()

    logger.info(f"Running seed action: {args.action}")
    asyncio.run(run(args.action))


if __name__ == "__main__":
    main()
