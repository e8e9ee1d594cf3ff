"""Post-hoc hallucination check of a generated answer against its sources."""

from __future__ import annotations

from procedure_rag.config.settings import Settings
from procedure_rag.generation.output_parsing import parse_json_object
from procedure_rag.generation.prompt_templates import VERIFY_PROMPT, VERIFY_SYSTEM
from procedure_rag.models.domain import FlaggedClaim, VerificationResult
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.llm import LLMProvider

logger = get_logger("verifier")

DEFAULT_CONFIDENCE = 0.5


def unchecked() -> VerificationResult:
    """Result used when the check could not run. It never blocks the answer."""
    return VerificationResult(status="verified", confidence=0.0, checked=False)


def derive_status(claims: list[FlaggedClaim]) -> str:
    if not claims:
        return "verified"
    if any(c.severity == "high" for c in claims):
        return "error"
    return "warning"


def _parse_claims(raw_flagged) -> list[FlaggedClaim]:
    if not isinstance(raw_flagged, list):
        return []
    claims = []
    for item in raw_flagged:
        if not isinstance(item, dict) or not item.get("claim"):
            continue
        claims.append(
            FlaggedClaim(
                claim=str(item["claim"]),
                reason=str(item.get("reason", "")),
                severity="high" if item.get("severity") == "high" else "medium",
            )
        )
    return claims


def _parse_confidence(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


class AnswerVerifier:
    def __init__(self, llm: LLMProvider, settings: Settings) -> None:
        self._llm = llm
        self._max_source_chars = settings.verification_max_source_chars
        self._max_tokens = settings.verification_max_tokens

    async def verify(self, answer: str, sources_text: str) -> VerificationResult:
        if not answer.strip():
            return VerificationResult(status="verified", confidence=1.0)

        prompt = VERIFY_PROMPT.format(
            sources_text=sources_text[: self._max_source_chars],
            answer=answer,
        )
        try:
            raw = await self._llm.generate(
                prompt,
                system=VERIFY_SYSTEM,
                temperature=0.0,
                max_tokens=self._max_tokens,
                json_output=True,
            )
        except Exception as e:
            logger.warning("verification_failed", error=str(e))
            return unchecked()

        outcome = parse_json_object(raw)
        if not outcome.ok:
            logger.warning("verification_unparseable", raw=raw[:200])
            return unchecked()

        claims = _parse_claims(outcome.value.get("flagged"))
        confidence = _parse_confidence(outcome.value.get("confidence"))
        status = derive_status(claims)

        logger.info(
            "answer_verified",
            status=status,
            confidence=round(confidence, 2),
            flagged=len(claims),
            severities=[c.severity for c in claims],
            parse_stage=outcome.stage,
        )
        return VerificationResult(status=status, confidence=confidence, flagged_claims=claims)
