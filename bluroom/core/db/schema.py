"""
Schema + migrations for the known-device store.

Design notes:
- SQLite `PRAGMA user_version` holds the schema version.
- Migrations are forward-only (no downgrade support).
"""

from __future__ import annotations

from typing import Final

import aiosqlite

# Bump when you change the schema and add a migration in `migrate()`.
SCHEMA_VERSION: Final[int] = 1


async def ensure_schema(conn: aiosqlite.Connection) -> None:
    """Create or migrate the schema to the current version."""
    cursor = await conn.execute("PRAGMA user_version;")
    row = await cursor.fetchone()
    current = int(row[0]) if row is not None else 0

    if current > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema version {current} is newer than supported {SCHEMA_VERSION}."
        )

    if current == SCHEMA_VERSION:
        return

    await migrate(conn, from_version=current, to_version=SCHEMA_VERSION)
    await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()


async def migrate(conn: aiosqlite.Connection, *, from_version: int, to_version: int) -> None:
    """Perform forward-only migrations."""
    # v0 -> v1
    if from_version == 0 and to_version >= 1:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS known_devices (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                address TEXT NOT NULL,
                port INTEGER NOT NULL DEFAULT 11000,
                hardware_address TEXT,
                name TEXT NOT NULL DEFAULT '',
                model_name TEXT,
                brand TEXT,
                discovered_at TEXT NOT NULL,
                last_seen_at TEXT NOT NULL,
                is_online INTEGER NOT NULL DEFAULT 1
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_known_devices_address ON known_devices(address);"
        )
        await conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_known_devices_hardware_address
            ON known_devices(hardware_address)
            """
        )
