"""Reciprocal Rank Fusion for merging retrieval results."""

from __future__ import annotations

from dataclasses import replace

from procedure_rag.config.constants import RRF_K
from procedure_rag.models.domain import RankedCandidate


def reciprocal_rank_fusion(
    result_lists: list[list[RankedCandidate]],
    k: int = RRF_K,
    limit: int | None = None,
) -> list[RankedCandidate]:
    """Merge multiple ranked candidate lists using RRF.

    Args:
        result_lists: Each list is ordered best first; position i has rank i + 1.
        k: RRF constant (higher = more weight to lower-ranked results).
        limit: Maximum number of merged candidates to return.

    Returns:
        Candidates keyed by id, carrying the fields from the first list that
        held them, with ``rrf_score`` set to the fused score and sorted
        descending. Equal scores keep first-seen order.
    """
    scores: dict[str, float] = {}
    first_seen: dict[str, RankedCandidate] = {}
    for result_list in result_lists:
        for rank, candidate in enumerate(result_list, start=1):
            if candidate.id not in first_seen:
                first_seen[candidate.id] = candidate
                scores[candidate.id] = 0.0
            scores[candidate.id] += 1.0 / (k + rank)

    merged = sorted(
        (replace(c, rrf_score=scores[cid]) for cid, c in first_seen.items()),
        key=lambda c: c.rrf_score,
        reverse=True,
    )
    return merged if limit is None else merged[:limit]
