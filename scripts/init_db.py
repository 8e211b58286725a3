"""Create the HealthNet schema straight from the table metadata, bypassing Alembic.

Meant for local development; deployed databases are managed with
``scripts/migrate.py``.
"""

import argparse
import asyncio

from sqlalchemy import text

from healthnet.database import dispose_engines, engine
from healthnet.models import metadata


async def init_db(reset: bool = False) -> None:
    async with engine.begin() as conn:
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
        if reset:
            await conn.run_sync(metadata.drop_all)
            print("✓ Dropped existing tables")
        await conn.run_sync(metadata.create_all)

    await dispose_engines()
    print(f"✓ Schema ready: {', '.join(sorted(metadata.tables))}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the HealthNet database schema")
    parser.add_argument("--reset", action="store_true", help="drop every table first")
    args = parser.parse_args()
    asyncio.run(init_db(reset=args.reset))
