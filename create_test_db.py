"""
Script to create and set up the PostgreSQL test database.
Run this before running tests against PostgreSQL (TEST_DATABASE_URL).
The default test run uses SQLite and needs no setup.
"""
import asyncio
import asyncpg
import os
from eventhub.db.session import Base, build_engine
import eventhub.db.models  # noqa: F401

# Database connection parameters - use environment variables if available (for Docker)
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432"))
DB_NAME = os.getenv("TEST_DB_NAME", "eventhub_test")


async def create_database() -> bool:
    """Create the test database if it doesn't exist."""
    try:
        conn = await asyncpg.connect(
            user=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            database='postgres'
        )
    except (OSError, asyncpg.PostgresError) as e:
        print(f"Error connecting to PostgreSQL: {e}")
        return False

    try:
        exists = await conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1",
            DB_NAME
        )
        if not exists:
            await conn.execute(f'CREATE DATABASE "{DB_NAME}"')
            print(f"Database '{DB_NAME}' created")
        else:
            print(f"Database '{DB_NAME}' already exists")
    except asyncpg.PostgresError as e:
        print(f"Error creating database: {e}")
        return False
    finally:
        await conn.close()

    return True


async def create_tables() -> None:
    """Create all tables in the test database."""
    engine = build_engine(
        f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    )
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        print("Tables created")
    finally:
        await engine.dispose()


async def main():
    print("Setting up test database...")

    if not await create_database():
        return
    await create_tables()

    print(f"Test database ready: {DB_NAME} on {DB_HOST}:{DB_PORT} (user {DB_USER})")
    print(
        "Run the suite against it with:\n"
        f"  TEST_DATABASE_URL=postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME} pytest"
    )


if __name__ == "__main__":
    asyncio.run(main())
