"""SQLite-backed search and chat trace store for observability."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import aiosqlite

from procedure_rag.models.domain import Trace
from procedure_rag.storage.migrations import initialize_trace_db


class SQLiteTraceStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_trace_db(self._db_path)

    async def save_trace(self, trace: Trace) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO traces "
                "(trace_id, kind, query, timestamp, latency_ms, detected_language, "
                "quality_passed, quality_confidence, verification_status, "
                "verification_confidence, spans) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    trace.trace_id,
                    trace.kind,
                    trace.query,
                    trace.timestamp.isoformat(),
                    trace.latency_ms,
                    trace.detected_language,
                    None if trace.quality_passed is None else int(trace.quality_passed),
                    trace.quality_confidence,
                    trace.verification_status,
                    trace.verification_confidence,
                    json.dumps(trace.spans),
                ),
            )
            await db.commit()

    async def get_trace(self, trace_id: str) -> Trace | None:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM traces WHERE trace_id = ?", (trace_id,)) as cursor:
                row = await cursor.fetchone()
                if row is None:
                    return None
                return self._row_to_trace(row)

    async def get_recent_traces(self, limit: int = 100, kind: str | None = None) -> list[Trace]:
        query = "SELECT * FROM traces"
        params: tuple = ()
        if kind:
            query += " WHERE kind = ?"
            params = (kind,)
        query += " ORDER BY timestamp DESC LIMIT ?"
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query, (*params, limit)) as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_trace(row) for row in rows]

    @staticmethod
    def _row_to_trace(row: aiosqlite.Row) -> Trace:
        timestamp = datetime.fromisoformat(row["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        passed = row["quality_passed"]
        return Trace(
            trace_id=row["trace_id"],
            kind=row["kind"],
            query=row["query"],
            timestamp=timestamp,
            latency_ms=row["latency_ms"],
            detected_language=row["detected_language"],
            quality_passed=None if passed is None else bool(passed),
            quality_confidence=row["quality_confidence"],
            verification_status=row["verification_status"],
            verification_confidence=row["verification_confidence"],
            spans=json.loads(row["spans"]),
        )
