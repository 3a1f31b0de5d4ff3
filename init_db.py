"""
Initialize database - create all tables
Run this script to set up a development database without running migrations
"""
import asyncio
import sys

from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import settings
from app.models import Base


async def init_database(reset: bool = False):
    """Create all tables, dropping the existing ones first when reset is set"""
    print("Connecting to database...")
    print(f"Database URL: {settings.DATABASE_URL[:50]}...")

    engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

    async with engine.begin() as conn:
        if reset:
            print("Dropping all tables...")
            await conn.run_sync(Base.metadata.drop_all)

        print("Creating all tables...")
        await conn.run_sync(Base.metadata.create_all)

    await engine.dispose()
    print("Database initialized: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    asyncio.run(init_database(reset="--reset" in sys.argv))
