"""Integration tests for SQLite document and trace stores."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest

from procedure_rag.models.domain import DocumentChunk, SearchFilters, Trace
from procedure_rag.storage.sqlite_store import SQLiteDocumentStore
from procedure_rag.storage.sqlite_trace_store import SQLiteTraceStore

CHUNKS = [
    DocumentChunk(
        id="l433-1",
        content="Renouvellement du titre de séjour : la demande est déposée en préfecture.",
        source="legifrance",
        doc_type="law_article",
        article_number="L433-1",
        metadata={"cross_references": ["R431-5"]},
        embedding=[1.0, 0.0, 0.0],
    ),
    DocumentChunk(
        id="r431-5",
        content="Délai de dépôt : deux mois avant l'expiration.",
        source="legifrance",
        doc_type="law_article",
        article_number="R431-5",
        embedding=[0.8, 0.6, 0.0],
    ),
    DocumentChunk(
        id="sp-vitale",
        content="Carte Vitale et Assurance maladie.",
        source="service-public",
        doc_type="procedure",
        embedding=[0.0, 1.0, 0.0],
    ),
    DocumentChunk(
        id="sp-impots",
        content="Déclaration de revenus en ligne.",
        source="service-public",
        doc_type="procedure",
        embedding=[0.0, 0.0, 1.0],
    ),
    DocumentChunk(
        id="en-guide",
        content="Residence permit renewal guide.",
        source="welcome-to-france",
        doc_type="guide",
        language="en",
        embedding=[1.0, 0.0, 0.0],
    ),
]

FR = SearchFilters(language="fr")


@pytest.fixture
async def doc_store():
    tmp = tempfile.mkdtemp()
    store = SQLiteDocumentStore(str(Path(tmp) / "chunks.db"))
    await store.initialize()
    await store.upsert_chunks(CHUNKS)
    return store


@pytest.fixture
async def trace_store():
    tmp = tempfile.mkdtemp()
    store = SQLiteTraceStore(str(Path(tmp) / "test_traces.db"))
    await store.initialize()
    return store


def _trace(kind="search", query="titre de séjour", timestamp=None, **kwargs):
    return Trace(
        trace_id=str(uuid4()),
        kind=kind,
        query=query,
        timestamp=timestamp or datetime.now(timezone.utc),
        latency_ms=150.0,
        **kwargs,
    )


async def test_upsert_and_count(doc_store):
    assert await doc_store.count_chunks() == 5
    await doc_store.upsert_chunks([CHUNKS[0]])
    assert await doc_store.count_chunks() == 5


async def test_hybrid_search_fuses_keyword_and_semantic(doc_store):
    results = await doc_store.hybrid_search(
        "renouvellement titre de séjour", [1.0, 0.0, 0.0], match_count=3, rrf_k=60, filters=FR
    )
    assert results[0].id == "l433-1"
    assert results[0].keyword_rank == 1
    assert results[0].semantic_rank == 1
    assert results[0].match_kind == "fused"
    assert results[0].rrf_score == pytest.approx(2 / 61)
    assert results[0].metadata == {"cross_references": ["R431-5"]}
    assert results[1].id == "r431-5"
    assert results[1].match_kind == "semantic"
    assert len(results) == 3
    assert all(r.similarity is None for r in results)


async def test_hybrid_search_filters_language(doc_store):
    results = await doc_store.hybrid_search(
        "residence permit renewal", [1.0, 0.0, 0.0], match_count=10, rrf_k=60,
        filters=SearchFilters(language="en"),
    )
    assert [r.id for r in results] == ["en-guide"]


async def test_hybrid_search_filters_doc_type(doc_store):
    results = await doc_store.hybrid_search(
        "carte vitale", [0.0, 1.0, 0.0], match_count=10, rrf_k=60,
        filters=SearchFilters(doc_type="procedure"),
    )
    assert {r.id for r in results} == {"sp-vitale", "sp-impots"}
    assert results[0].id == "sp-vitale"


async def test_vector_search(doc_store):
    results = await doc_store.vector_search([1.0, 0.0, 0.0], match_count=2, filters=FR)
    assert [r.id for r in results] == ["l433-1", "r431-5"]
    assert [r.semantic_rank for r in results] == [1, 2]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[1].similarity == pytest.approx(0.8)
    assert results[0].keyword_rank is None


async def test_fetch_by_article_numbers(doc_store):
    results = await doc_store.fetch_by_article_numbers(["R431-5", "L999-9"])
    assert [r.id for r in results] == ["r431-5"]
    assert results[0].rrf_score == 0.0
    assert await doc_store.fetch_by_article_numbers([]) == []


async def test_search_empty_store():
    tmp = tempfile.mkdtemp()
    store = SQLiteDocumentStore(str(Path(tmp) / "empty.db"))
    await store.initialize()
    assert await store.hybrid_search("séjour", [1.0], 5, 60, FR) == []
    assert await store.vector_search([1.0], 5, FR) == []


async def test_save_and_get_trace(trace_store):
    trace = _trace(
        kind="chat",
        detected_language="en",
        quality_passed=True,
        quality_confidence=0.85,
        verification_status="warning",
        verification_confidence=0.6,
        spans=[{"name": "retrieval", "duration_ms": 50.0}],
    )
    await trace_store.save_trace(trace)
    retrieved = await trace_store.get_trace(trace.trace_id)
    assert retrieved is not None
    assert retrieved.query == "titre de séjour"
    assert retrieved.kind == "chat"
    assert retrieved.quality_passed is True
    assert retrieved.quality_confidence == 0.85
    assert retrieved.verification_status == "warning"
    assert retrieved.spans == [{"name": "retrieval", "duration_ms": 50.0}]
    assert retrieved.timestamp == trace.timestamp


async def test_trace_optional_fields_round_trip_as_none(trace_store):
    trace = _trace()
    await trace_store.save_trace(trace)
    retrieved = await trace_store.get_trace(trace.trace_id)
    assert retrieved.quality_passed is None
    assert retrieved.verification_status is None


async def test_get_missing_trace(trace_store):
    assert await trace_store.get_trace("missing") is None


async def test_recent_traces(trace_store):
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    for i in range(5):
        kind = "chat" if i % 2 else "search"
        await trace_store.save_trace(
            _trace(kind=kind, query=f"Query {i}", timestamp=start + timedelta(minutes=i))
        )

    recent = await trace_store.get_recent_traces(limit=3)
    assert [t.query for t in recent] == ["Query 4", "Query 3", "Query 2"]

    chats = await trace_store.get_recent_traces(kind="chat")
    assert [t.query for t in chats] == ["Query 3", "Query 1"]
