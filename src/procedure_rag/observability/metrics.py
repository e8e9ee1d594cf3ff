"""Metric recording helpers for traces."""

from __future__ import annotations

from procedure_rag.models.domain import QualityAssessment, SearchResultItem, VerificationResult
from procedure_rag.observability.logger import get_logger

logger = get_logger("metrics")


def log_retrieval_metrics(
    trace_id: str,
    detected_language: str,
    results: list[SearchResultItem],
) -> None:
    logger.info(
        "retrieval_metrics",
        trace_id=trace_id,
        detected_language=detected_language,
        top_scores=[round(r.score, 4) for r in results[:5]],
        num_results=len(results),
        doc_types=sorted({r.doc_type for r in results}),
    )


def log_quality_metrics(trace_id: str, quality: QualityAssessment) -> None:
    logger.info(
        "quality_metrics",
        trace_id=trace_id,
        passed=quality.passed,
        confidence=round(quality.confidence, 4),
        top_score=round(quality.top_score, 4),
        avg_score=round(quality.avg_score, 4),
        source_count=quality.source_count,
        source_diversity=quality.source_diversity,
        reason=quality.reason,
    )


def log_verification_metrics(
    trace_id: str,
    verification: VerificationResult,
    regenerated: bool,
) -> None:
    logger.info(
        "verification_metrics",
        trace_id=trace_id,
        status=verification.status,
        confidence=round(verification.confidence, 4),
        flagged=len(verification.flagged_claims),
        checked=verification.checked,
        regenerated=regenerated,
    )


def log_latency(trace_id: str, stage: str, duration_ms: float) -> None:
    logger.info(
        "latency",
        trace_id=trace_id,
        stage=stage,
        duration_ms=round(duration_ms, 2),
    )
