"""Retrieval quality gate: confidence = 0.4*top + 0.3*avg + 0.2*count + 0.1*diversity."""

from __future__ import annotations

from procedure_rag.config.settings import Settings
from procedure_rag.models.domain import QualityAssessment, SearchResultItem
from procedure_rag.scoring.reason_codes import ReasonCode

W_TOP = 0.4
W_AVG = 0.3
W_COUNT = 0.2
W_DIVERSITY = 0.1


class QualityGate:
    def __init__(self, settings: Settings) -> None:
        self.min_top_score = settings.gate_min_top_score
        self.min_avg_score = settings.gate_min_avg_score
        self.min_sources = settings.gate_min_sources

    def assess(self, results: list[SearchResultItem]) -> QualityAssessment:
        if not results:
            return QualityAssessment(
                passed=False,
                confidence=0.0,
                top_score=0.0,
                avg_score=0.0,
                source_count=0,
                source_diversity=0,
                reason=ReasonCode.NO_SOURCES_FOUND.value,
            )

        scores = [r.score for r in results]
        top_score = max(scores)
        avg_score = sum(scores) / len(scores)
        source_count = len(results)
        source_diversity = len({r.doc_type for r in results})

        confidence = (
            W_TOP * top_score
            + W_AVG * min(avg_score * 4, 1.0)
            + W_COUNT * min(source_count / 5, 1.0)
            + W_DIVERSITY * min(source_diversity / 3, 1.0)
        )

        passed = (
            top_score >= self.min_top_score
            and avg_score >= self.min_avg_score
            and source_count >= self.min_sources
        )

        reason = None
        if not passed:
            if top_score < self.min_top_score:
                reason = ReasonCode.LOW_RELEVANCE.value
            elif avg_score < self.min_avg_score:
                reason = ReasonCode.WEAK_SOURCES.value
            else:
                reason = ReasonCode.INSUFFICIENT_SOURCES.value

        return QualityAssessment(
            passed=passed,
            confidence=confidence,
            top_score=top_score,
            avg_score=avg_score,
            source_count=source_count,
            source_diversity=source_diversity,
            reason=reason,
        )
