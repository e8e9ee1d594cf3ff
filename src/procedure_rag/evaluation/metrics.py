"""Evaluation metric computation for the search endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby


@dataclass
class EvalCaseResult:
    """Result of running a single evaluation case."""

    case_id: str
    query: str
    category: str
    expected_language: str | None
    detected_language: str
    expected_pass: bool
    quality_passed: bool
    expected_articles: list[str]
    articles_found: list[str]
    articles_missing: list[str]
    confidence: float
    result_count: int
    latency_ms: float
    reason: str | None = None
    error: str | None = None

    @property
    def gate_correct(self) -> bool:
        return self.quality_passed == self.expected_pass

    @property
    def language_correct(self) -> bool | None:
        if self.expected_language is None:
            return None
        return self.detected_language == self.expected_language


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_metrics(results: list[EvalCaseResult]) -> dict:
    """Compute overall evaluation metrics from raw results.

    Returns a dict with gate accuracy, language accuracy, expected-article
    recall, averages and the error count.
    """
    total = len(results)
    if total == 0:
        return _empty_metrics()

    valid = [r for r in results if r.error is None]
    errors = [r for r in results if r.error is not None]

    gate_accuracy = _mean([1.0 if r.gate_correct else 0.0 for r in valid])

    with_language = [r for r in valid if r.language_correct is not None]
    language_accuracy = _mean([1.0 if r.language_correct else 0.0 for r in with_language])

    # Recall over all expected articles across cases that name any
    expected_total = sum(len(r.expected_articles) for r in valid)
    found_total = sum(len(r.articles_found) for r in valid)
    article_recall = found_total / expected_total if expected_total else 0.0

    # False blocks: answerable questions the gate refused
    expected_pass = [r for r in valid if r.expected_pass]
    false_block_rate = _mean([0.0 if r.quality_passed else 1.0 for r in expected_pass])

    # False passes: out-of-scope questions the gate let through
    expected_block = [r for r in valid if not r.expected_pass]
    false_pass_rate = _mean([1.0 if r.quality_passed else 0.0 for r in expected_block])

    return {
        "total_cases": total,
        "valid_cases": len(valid),
        "gate_accuracy": gate_accuracy,
        "false_block_rate": false_block_rate,
        "false_pass_rate": false_pass_rate,
        "language_accuracy": language_accuracy,
        "article_recall": article_recall,
        "avg_confidence": _mean([r.confidence for r in valid]),
        "avg_latency_ms": _mean([r.latency_ms for r in valid]),
        "error_count": len(errors),
    }


def compute_category_metrics(results: list[EvalCaseResult]) -> dict[str, dict]:
    """Compute per-category breakdowns of key metrics."""
    valid = [r for r in results if r.error is None]
    if not valid:
        return {}

    categories: dict[str, dict] = {}
    sorted_results = sorted(valid, key=lambda r: r.category)

    for cat, group in groupby(sorted_results, key=lambda r: r.category):
        cat_results = list(group)
        n = len(cat_results)
        categories[cat] = {
            "count": n,
            "gate_accuracy": sum(r.gate_correct for r in cat_results) / n,
            "avg_confidence": sum(r.confidence for r in cat_results) / n,
            "avg_latency_ms": sum(r.latency_ms for r in cat_results) / n,
            "pass_rate": sum(1 for r in cat_results if r.quality_passed) / n,
        }

    return categories


def _empty_metrics() -> dict:
    return {
        "total_cases": 0,
        "valid_cases": 0,
        "gate_accuracy": 0.0,
        "false_block_rate": 0.0,
        "false_pass_rate": 0.0,
        "language_accuracy": 0.0,
        "article_recall": 0.0,
        "avg_confidence": 0.0,
        "avg_latency_ms": 0.0,
        "error_count": 0,
    }
