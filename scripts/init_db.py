"""
Initialize the treasury database tables.

Usage:
    python -m scripts.init_db

Requires DATABASE_URL in .env.
"""
import asyncio
from sqlalchemy import text
from shared.database import engine

SCHEMA_SQL = """
-- ============================================================
-- TREASURY TABLES
-- ============================================================

-- Events emitted by the treasury engine on successful operations
CREATE TABLE IF NOT EXISTS treasury_events (
    id SERIAL PRIMARY KEY,
    treasury_address VARCHAR(66) NOT NULL,
    seq INTEGER NOT NULL,
    name VARCHAR(50) NOT NULL,  -- 'vault_added', 'allocation_updated', 'deposit_received', ...
    data JSON DEFAULT '{}',
    emitted_at TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_treasury_events_name ON treasury_events(name);
CREATE UNIQUE INDEX IF NOT EXISTS idx_treasury_events_seq ON treasury_events(treasury_address, seq)
"""


async def init_database():
    if engine is None:
        print("ERROR: DATABASE_URL not configured. Set it in .env")
        return

    print("Connecting to database...")
    async with engine.begin() as conn:
        print("Running schema migration...")
        for statement in SCHEMA_SQL.split(";"):
            statement = statement.strip()
            if statement:
                await conn.execute(text(statement))
        print("All tables created successfully.")

    print("Database initialization complete.")


if __name__ == "__main__":
    asyncio.run(init_database())
