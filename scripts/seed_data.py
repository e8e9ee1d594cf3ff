"""Seed the local SQLite document store with the sample corpus for development."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from procedure_rag.config.settings import Settings
from procedure_rag.embeddings.openai_embedder import OpenAIEmbedder
from procedure_rag.models.domain import DocumentChunk
from procedure_rag.observability.logger import setup_logging
from procedure_rag.storage.sqlite_store import SQLiteDocumentStore

CORPUS_PATH = Path(__file__).parent.parent / "tests" / "fixtures" / "sample_corpus.json"


def load_corpus(path: Path) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


async def main(corpus_path: Path, embed: bool) -> None:
    settings = Settings()
    setup_logging(settings.log_level, json=False)

    Path(settings.sqlite_store_db_path).parent.mkdir(parents=True, exist_ok=True)
    store = SQLiteDocumentStore(settings.sqlite_store_db_path)
    await store.initialize()

    rows = load_corpus(corpus_path)
    embeddings: list[list[float] | None] = [None] * len(rows)
    if embed:
        embedder = OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            batch_size=settings.embedding_batch_size,
            batch_delay_s=settings.embedding_batch_delay_s,
            retry_base_delay_s=settings.embedding_retry_base_delay_s,
            max_retries=settings.embedding_max_retries,
            timeout_s=settings.embedding_timeout_s,
        )
        embeddings = await embedder.embed_batch([r["content"] for r in rows])

    chunks = [
        DocumentChunk(
            id=r["id"],
            content=r["content"],
            source=r["source"],
            doc_type=r["doc_type"],
            language=r.get("language", "fr"),
            article_number=r.get("article_number"),
            code_name=r.get("code_name"),
            source_url=r.get("source_url"),
            metadata=r.get("metadata"),
            embedding=embedding,
        )
        for r, embedding in zip(rows, embeddings)
    ]
    await store.upsert_chunks(chunks)

    print(f"Seeded {len(chunks)} chunks from {corpus_path.name}")
    print(f"Total chunks: {await store.count_chunks()}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the local document store")
    parser.add_argument("--corpus", default=str(CORPUS_PATH), help="Corpus JSON path")
    parser.add_argument(
        "--no-embed",
        action="store_true",
        help="Skip embeddings (keyword search only, no OpenAI key needed)",
    )
    args = parser.parse_args()
    asyncio.run(main(Path(args.corpus), embed=not args.no_embed))
