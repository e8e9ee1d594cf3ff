"""Expansion of law-article results with the articles they cite."""

from __future__ import annotations

from procedure_rag.config.constants import CROSS_REFERENCES_KEY, LAW_ARTICLE_DOC_TYPE
from procedure_rag.models.domain import RankedCandidate
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.store import DocumentStore

logger = get_logger("cross_references")


def collect_cross_references(results: list[RankedCandidate], limit: int = 3) -> list[str]:
    """Referenced article numbers not already in ``results``, in citation order."""
    present = {r.id for r in results} | {r.article_number for r in results if r.article_number}
    refs: list[str] = []
    for result in results:
        if result.doc_type != LAW_ARTICLE_DOC_TYPE or not result.metadata:
            continue
        cited = result.metadata.get(CROSS_REFERENCES_KEY)
        if not isinstance(cited, list):
            continue
        for ref in cited:
            if not isinstance(ref, str) or ref in present or ref in refs:
                continue
            refs.append(ref)
            if len(refs) >= limit:
                return refs
    return refs


class CrossReferenceExpander:
    def __init__(self, store: DocumentStore, limit: int = 3) -> None:
        self._store = store
        self._limit = limit

    async def expand(self, results: list[RankedCandidate]) -> list[RankedCandidate]:
        refs = collect_cross_references(results, self._limit)
        if not refs:
            return results

        try:
            fetched = await self._store.fetch_by_article_numbers(refs)
        except Exception as e:
            logger.warning("cross_reference_lookup_failed", refs=refs, error=str(e))
            return results

        seen = {r.id for r in results}
        extra: list[RankedCandidate] = []
        for candidate in fetched:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            # Cited articles are supporting evidence and always sort last.
            candidate.rrf_score = 0.0
            extra.append(candidate)

        if extra:
            logger.info("cross_references_added", refs=refs, added=len(extra))
        return results + extra
