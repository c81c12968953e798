"""
Known-device store: durable record of every player seen so far.

The store lets discovery skip the slow multicast sweep: if we already know
where the players live, we can ask them directly.

SQLite + aiosqlite, one connection per store. Each per-device
read-modify-write runs under an `asyncio.Lock` and commits on its own, so an
upsert or flag flip is atomic per device even when several discovery calls
overlap on the shared connection.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

import aiosqlite

from bluroom.core.db.models import (
    KnownDevice,
    format_timestamp,
    normalize_text,
    utc_now,
)
from bluroom.core.db.schema import ensure_schema as ensure_schema_sql
from bluroom.errors import StoreError
from bluroom.player.models import Player

logger = logging.getLogger(__name__)


class KnownDeviceStore:
    """
    Async access layer for known devices.

    Usage:
        store = KnownDeviceStore("bluroom.sqlite3")
        await store.open()
        await store.ensure_schema()
        ... queries ...
        await store.close()
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._db_path = str(db_path)
        self._clock = clock
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        if self._conn is not None:
            return
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode = WAL;")
        await self._conn.execute("PRAGMA synchronous = NORMAL;")

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreError("KnownDeviceStore is not open. Call await store.open() first.")
        return self._conn

    async def ensure_schema(self) -> None:
        """Create or migrate schema to current version."""
        conn = self._require_conn()
        await ensure_schema_sql(conn)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_all(self) -> list[KnownDevice]:
        """All known devices, online or not, ordered by name."""
        conn = self._require_conn()
        try:
            cursor = await conn.execute(
                "SELECT * FROM known_devices ORDER BY name COLLATE NOCASE, id;"
            )
            rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read known devices: {e}") from e
        return [KnownDevice.from_row(row) for row in rows]

    async def has_any(self) -> bool:
        conn = self._require_conn()
        try:
            cursor = await conn.execute("SELECT 1 FROM known_devices LIMIT 1;")
            row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read known devices: {e}") from e
        return row is not None

    async def get_by_address(self, address: str) -> KnownDevice | None:
        conn = self._require_conn()
        try:
            cursor = await conn.execute(
                "SELECT * FROM known_devices WHERE address = ? ORDER BY id LIMIT 1;",
                (address,),
            )
            row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read known device {address}: {e}") from e
        return KnownDevice.from_row(row) if row is not None else None

    # =========================================================================
    # Writes
    # =========================================================================

    async def upsert_from_players(self, players: Iterable[Player]) -> int:
        """
        Record freshly seen players.

        Each player is matched to an existing record by hardware address
        first, then by IP address. A match is updated (address, port, name,
        model, brand, last seen, online); otherwise a new record is inserted.

        Returns:
            Number of players written.
        """
        conn = self._require_conn()
        written = 0

        for player in players:
            async with self._write_lock:
                try:
                    await self._upsert_one(conn, player)
                    await conn.commit()
                except sqlite3.Error as e:
                    await conn.rollback()
                    raise StoreError(f"Could not save player {player.address}: {e}") from e
            written += 1

        logger.info("Saved %d players to database", written)
        return written

    async def _upsert_one(self, conn: aiosqlite.Connection, player: Player) -> None:
        now = format_timestamp(self._clock())
        hardware_address = normalize_text(player.hardware_address)

        existing_id: int | None = None
        if hardware_address:
            cursor = await conn.execute(
                "SELECT id FROM known_devices WHERE hardware_address = ? ORDER BY id LIMIT 1;",
                (hardware_address,),
            )
            row = await cursor.fetchone()
            if row is not None:
                existing_id = int(row["id"])

        if existing_id is None:
            cursor = await conn.execute(
                "SELECT id FROM known_devices WHERE address = ? ORDER BY id LIMIT 1;",
                (player.address,),
            )
            row = await cursor.fetchone()
            if row is not None:
                existing_id = int(row["id"])

        values = {
            "address": player.address,
            "port": player.port,
            "hardware_address": hardware_address,
            "name": player.name,
            "model_name": normalize_text(player.model_name),
            "brand": normalize_text(player.brand),
            "now": now,
        }

        if existing_id is not None:
            await conn.execute(
                """
                UPDATE known_devices SET
                    address          = :address,
                    port             = :port,
                    hardware_address = COALESCE(:hardware_address, hardware_address),
                    name             = :name,
                    model_name       = :model_name,
                    brand            = :brand,
                    last_seen_at     = :now,
                    is_online        = 1
                WHERE id = :id
                """,
                {**values, "id": existing_id},
            )
            logger.debug("Updated stored player: %s (%s)", player.name, player.address)
        else:
            await conn.execute(
                """
                INSERT INTO known_devices(
                    address, port, hardware_address, name, model_name, brand,
                    discovered_at, last_seen_at, is_online
                ) VALUES (
                    :address, :port, :hardware_address, :name, :model_name, :brand,
                    :now, :now, 1
                )
                """,
                values,
            )
            logger.info("Added new stored player: %s (%s)", player.name, player.address)

    async def mark_online(self, address: str) -> bool:
        """Flag a device online and bump its last-seen time. Idempotent."""
        changed = await self._write(
            "UPDATE known_devices SET is_online = 1, last_seen_at = ? WHERE address = ?;",
            (format_timestamp(self._clock()), address),
        )
        if changed:
            logger.debug("Marked player online: %s", address)
        return changed

    async def mark_offline(self, address: str) -> bool:
        """Flag a device offline. The record itself is kept. Idempotent."""
        changed = await self._write(
            "UPDATE known_devices SET is_online = 0 WHERE address = ?;",
            (address,),
        )
        if changed:
            logger.debug("Marked player offline: %s", address)
        return changed

    async def remove(self, address: str) -> bool:
        """Explicitly forget a device (administrative action only)."""
        removed = await self._write("DELETE FROM known_devices WHERE address = ?;", (address,))
        if removed:
            logger.info("Removed stored player: %s", address)
        return removed

    async def _write(self, sql: str, params: tuple[object, ...]) -> bool:
        conn = self._require_conn()
        async with self._write_lock:
            try:
                cursor = await conn.execute(sql, params)
                await conn.commit()
            except sqlite3.Error as e:
                await conn.rollback()
                raise StoreError(f"Known-device write failed: {e}") from e
        return cursor.rowcount > 0
