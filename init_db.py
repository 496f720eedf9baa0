"""
Initialize database - create all tables
Run this script to set up a development database from scratch.
Production databases are managed with `alembic upgrade head`.
"""
import asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from app.core.config import settings
from app.models import Base


async def init_database():
    """Drop and recreate all database tables"""
    print("Connecting to database...")
    print(f"Database URL: {settings.DATABASE_URL[:50]}...")

    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=True,
    )

    async with engine.begin() as conn:
        print("Dropping all tables...")
        await conn.run_sync(Base.metadata.drop_all)

        print("Creating all tables...")
        await conn.run_sync(Base.metadata.create_all)

    await engine.dispose()
    print("✅ Database initialized successfully!")
    print(f"Tables: {', '.join(sorted(Base.metadata.tables))}")

if __name__ == "__main__":
    asyncio.run(init_database())
