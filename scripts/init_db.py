"""Script to initialize the database."""

import asyncio

from sqlalchemy import text

from gametracker.database import engine
from gametracker.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            # Enable pgcrypto extension
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        # Create all tables
        await conn.run_sync(metadata.create_all)

        print("✓ Database initialized successfully!")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
