"""Idempotent database schema creation."""

from __future__ import annotations

import aiosqlite

DOCUMENT_CHUNKS_TABLE = """
CREATE TABLE IF NOT EXISTS document_chunks (
    id TEXT PRIMARY KEY,
    content TEXT NOT NULL,
    source TEXT NOT NULL,
    doc_type TEXT NOT NULL,
    language TEXT NOT NULL DEFAULT 'fr',
    article_number TEXT,
    code_name TEXT,
    source_url TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    embedding TEXT
)
"""

CHUNKS_ARTICLE_INDEX = """
CREATE INDEX IF NOT EXISTS idx_document_chunks_article ON document_chunks(article_number)
"""

CHUNKS_FILTER_INDEX = """
CREATE INDEX IF NOT EXISTS idx_document_chunks_filter ON document_chunks(language, doc_type, source)
"""

TRACES_TABLE = """
CREATE TABLE IF NOT EXISTS traces (
    trace_id TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    query TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    latency_ms REAL NOT NULL,
    detected_language TEXT,
    quality_passed INTEGER,
    quality_confidence REAL,
    verification_status TEXT,
    verification_confidence REAL,
    spans TEXT NOT NULL DEFAULT '[]'
)
"""

TRACES_TIMESTAMP_INDEX = """
CREATE INDEX IF NOT EXISTS idx_traces_timestamp ON traces(timestamp)
"""


async def initialize_chunk_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(DOCUMENT_CHUNKS_TABLE)
        await db.execute(CHUNKS_ARTICLE_INDEX)
        await db.execute(CHUNKS_FILTER_INDEX)
        await db.commit()


async def initialize_trace_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(TRACES_TABLE)
        await db.execute(TRACES_TIMESTAMP_INDEX)
        await db.commit()
