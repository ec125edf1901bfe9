"""
SQLite-backed key-value store.

Entries live in one table keyed by the encoded key BLOB, so SQLite's
``memcmp`` ordering of BLOBs gives the same key order as the memory
backend. Each batch runs in a single ``BEGIN IMMEDIATE`` transaction.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Union

import aiosqlite

from ..core.logging import get_logger
from .base import (
    Check,
    CommitResult,
    Key,
    KvEntry,
    KvError,
    KvStore,
    Mutation,
    apply_sum,
    check_delta,
    decode_key,
    encode_key,
    format_versionstamp,
    load_value,
)


logger = get_logger(__name__)


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS kv (
        key BLOB PRIMARY KEY,
        value TEXT NOT NULL,
        version INTEGER NOT NULL
    ) WITHOUT ROWID
    """,
    """
    CREATE TABLE IF NOT EXISTS kv_meta (
        name TEXT PRIMARY KEY,
        value INTEGER NOT NULL
    )
    """,
    "INSERT OR IGNORE INTO kv_meta (name, value) VALUES ('version', 0)",
)


class SqliteKvStore(KvStore):
    """
    Durable ordered key-value store in a single SQLite file.

    Use :meth:`open` to construct; it creates the schema if needed.
    """

    def __init__(self, conn: aiosqlite.Connection, path: Union[str, Path]):
        self._conn = conn
        self.path = path
        # One connection is shared by every request.
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, path: Union[str, Path]) -> "SqliteKvStore":
        """Open (or create) the database at ``path``."""
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = await aiosqlite.connect(str(path), isolation_level=None)
            await conn.execute("PRAGMA journal_mode=WAL")
            for statement in _SCHEMA:
                await conn.execute(statement)
        except aiosqlite.Error as e:
            logger.error("Failed to open store", path=str(path), error=str(e))
            raise KvError(f"Cannot open store at {path}: {e}") from e
        
        logger.info("Opened store", path=str(path))
        return cls(conn, path)

    async def get(self, key: Key) -> Optional[KvEntry]:
        raw_key = encode_key(key)
        try:
            async with self._lock:
                async with self._conn.execute(
                    "SELECT value, version FROM kv WHERE key = ?", (raw_key,)
                ) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise KvError(f"get failed: {e}") from e
        
        if row is None:
            return None
        return KvEntry(key, load_value(row[0]), format_versionstamp(row[1]))

    async def list(self, prefix: Key = ()) -> List[KvEntry]:
        raw_prefix = encode_key(prefix)
        try:
            async with self._lock:
                async with self._conn.execute(
                    "SELECT key, value, version FROM kv "
                    "WHERE key > ? AND key < ? ORDER BY key",
                    (raw_prefix, raw_prefix + b"\xff"),
                ) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise KvError(f"list failed: {e}") from e
        
        return [
            KvEntry(decode_key(raw_key), load_value(text), format_versionstamp(version))
            for raw_key, text, version in rows
        ]

    async def _current(self, raw_key: bytes) -> Optional[tuple[str, int]]:
        async with self._conn.execute(
            "SELECT value, version FROM kv WHERE key = ?", (raw_key,)
        ) as cursor:
            row = await cursor.fetchone()
        return (row[0], row[1]) if row else None

    async def _apply(
        self,
        checks: List[Check],
        mutations: List[Mutation],
        written: Optional[dict[bytes, str]] = None,
    ) -> CommitResult:
        """
        Run one batch inside a transaction. Caller must hold the lock.

        When ``written`` is given it receives the JSON text of every key
        set or summed, as seen inside the transaction.
        """
        await self._conn.execute("BEGIN IMMEDIATE")
        try:
            for check in checks:
                current = await self._current(encode_key(check.key))
                stamp = format_versionstamp(current[1]) if current else None
                if stamp != check.versionstamp:
                    await self._conn.execute("ROLLBACK")
                    logger.debug("Atomic check failed", key=check.key)
                    return CommitResult(ok=False)
            
            await self._conn.execute(
                "UPDATE kv_meta SET value = value + 1 WHERE name = 'version'"
            )
            async with self._conn.execute(
                "SELECT value FROM kv_meta WHERE name = 'version'"
            ) as cursor:
                version = (await cursor.fetchone())[0]
            
            for mutation in mutations:
                raw_key = encode_key(mutation.key)
                if mutation.kind == "delete":
                    await self._conn.execute("DELETE FROM kv WHERE key = ?", (raw_key,))
                    continue
                if mutation.kind == "sum":
                    current = await self._current(raw_key)
                    text = apply_sum(current[0] if current else None, mutation.value)
                else:
                    text = mutation.value
                await self._conn.execute(
                    "INSERT INTO kv (key, value, version) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                    "version = excluded.version",
                    (raw_key, text, version),
                )
                if written is not None:
                    written[raw_key] = text
            
            await self._conn.execute("COMMIT")
        except BaseException:
            await self._conn.execute("ROLLBACK")
            raise
        
        return CommitResult(ok=True, versionstamp=format_versionstamp(version))

    async def _commit(self, checks: List[Check], mutations: List[Mutation]) -> CommitResult:
        try:
            async with self._lock:
                return await self._apply(checks, mutations)
        except aiosqlite.Error as e:
            logger.error("Commit failed", error=str(e))
            raise KvError(f"commit failed: {e}") from e

    async def increment(self, key: Key, delta: int = 1) -> int:
        check_delta(delta)
        raw_key = encode_key(key)
        try:
            async with self._lock:
                written: dict[bytes, str] = {}
                await self._apply([], [Mutation("sum", key, delta)], written)
        except aiosqlite.Error as e:
            logger.error("Increment failed", key=key, error=str(e))
            raise KvError(f"increment failed: {e}") from e
        
        return load_value(written[raw_key])

    async def close(self) -> None:
        await self._conn.close()
        logger.info("Closed store", path=str(self.path))
