"""SQLite-backed query embedding cache with a time-to-live."""

from __future__ import annotations

import hashlib
import json
import time

import aiosqlite

CREATE_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS embedding_cache (
    text_hash TEXT PRIMARY KEY,
    embedding TEXT NOT NULL,
    expires_at REAL NOT NULL
)
"""


class EmbeddingCache:
    def __init__(self, db_path: str, ttl_s: int = 300, clock=time.time) -> None:
        self._db_path = db_path
        self._ttl_s = ttl_s
        self._clock = clock

    async def initialize(self) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(CREATE_CACHE_TABLE)
            await db.commit()

    async def get(self, text: str) -> list[float] | None:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(
                "SELECT embedding, expires_at FROM embedding_cache WHERE text_hash = ?",
                (self._hash(text),),
            ) as cursor:
                row = await cursor.fetchone()
        if row is None or row[1] <= self._clock():
            return None
        return json.loads(row[0])

    async def put(self, text: str, embedding: list[float]) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO embedding_cache (text_hash, embedding, expires_at) "
                "VALUES (?, ?, ?)",
                (self._hash(text), json.dumps(embedding), self._clock() + self._ttl_s),
            )
            await db.commit()

    async def prune(self) -> int:
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                "DELETE FROM embedding_cache WHERE expires_at <= ?", (self._clock(),)
            )
            await db.commit()
            return cursor.rowcount

    @staticmethod
    def _hash(text: str) -> str:
        key = text.lower().strip()
        return hashlib.sha256(key.encode("utf-8")).hexdigest()
