"""Evaluation runner: loads dataset, queries the live /search API, collects results."""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path

import httpx

from procedure_rag.evaluation.metrics import EvalCaseResult

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 60.0
DEFAULT_CONCURRENCY = 3

DATASET_PATH = (
    Path(__file__).parent.parent.parent.parent / "tests" / "fixtures" / "eval_dataset.json"
)


def load_dataset(path: Path | None = None) -> list[dict]:
    """Load evaluation dataset from JSON file."""
    p = path or DATASET_PATH
    with open(p, encoding="utf-8") as f:
        return json.load(f)


def score_response(case: dict, data: dict, latency_ms: float) -> EvalCaseResult:
    """Turn one /search response body into an EvalCaseResult."""
    expected_articles = case.get("expected_articles", [])
    returned = {r.get("article_number") for r in data.get("results", []) if r.get("article_number")}
    quality = data.get("quality", {})

    return EvalCaseResult(
        case_id=case["id"],
        query=case["query"],
        category=case["category"],
        expected_language=case.get("expected_language"),
        detected_language=data.get("query_info", {}).get("detected_language", ""),
        expected_pass=case.get("expected_pass", True),
        quality_passed=bool(quality.get("passed", False)),
        expected_articles=expected_articles,
        articles_found=[a for a in expected_articles if a in returned],
        articles_missing=[a for a in expected_articles if a not in returned],
        confidence=float(quality.get("confidence", 0.0)),
        result_count=data.get("total", 0),
        latency_ms=latency_ms,
        reason=quality.get("reason"),
    )


async def run_single_case(
    client: httpx.AsyncClient,
    case: dict,
    semaphore: asyncio.Semaphore,
) -> EvalCaseResult:
    """Run a single evaluation case against the API."""
    async with semaphore:
        start = time.monotonic()
        try:
            payload = {"query": case["query"], "count": case.get("count", 8)}
            if case.get("language"):
                payload["language"] = case["language"]
            response = await client.post("/search", json=payload)
            response.raise_for_status()
            latency_ms = (time.monotonic() - start) * 1000
            return score_response(case, response.json(), latency_ms)
        except Exception as e:
            return EvalCaseResult(
                case_id=case["id"],
                query=case["query"],
                category=case["category"],
                expected_language=case.get("expected_language"),
                detected_language="",
                expected_pass=case.get("expected_pass", True),
                quality_passed=False,
                expected_articles=case.get("expected_articles", []),
                articles_found=[],
                articles_missing=case.get("expected_articles", []),
                confidence=0.0,
                result_count=0,
                latency_ms=0.0,
                error=str(e),
            )


async def run_evaluation(
    base_url: str = DEFAULT_BASE_URL,
    dataset_path: Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[EvalCaseResult]:
    """Run the full evaluation suite against a live server.

    The server's per-IP rate limit applies; keep ``concurrency`` low or raise
    RAG_RATE_LIMIT_REQUESTS_PER_MINUTE on the server for large datasets.
    """
    dataset = load_dataset(dataset_path)
    semaphore = asyncio.Semaphore(concurrency)

    async with httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(timeout),
    ) as client:
        # Verify server is up
        try:
            health = await client.get("/health")
            health.raise_for_status()
            health_data = health.json()
            print(
                f"Server healthy: store={health_data.get('store_backend', '?')}, "
                f"rerank={health_data.get('rerank_mode', '?')}"
            )
        except Exception as e:
            raise ConnectionError(
                f"Cannot reach server at {base_url}/health. Is the server running? Error: {e}"
            ) from e

        tasks = [run_single_case(client, case, semaphore) for case in dataset]
        results = await asyncio.gather(*tasks)

    return list(results)
