"""Tests for post-hoc answer verification."""

from __future__ import annotations

import json

import pytest
from conftest import ScriptedLLM

from procedure_rag.generation.prompt_templates import VERIFY_SYSTEM
from procedure_rag.models.domain import FlaggedClaim
from procedure_rag.verification.verifier import AnswerVerifier, derive_status

SOURCES = (
    "[Source 1] (law_article: legifrance)\n"
    "Article L433-1 : La carte de séjour temporaire peut être renouvelée. "
    "La demande est déposée dans les deux mois précédant l'expiration."
)


def _verifier(settings, *responses) -> tuple[AnswerVerifier, ScriptedLLM]:
    llm = ScriptedLLM(responses)
    return AnswerVerifier(llm, settings), llm


def test_derive_status():
    assert derive_status([]) == "verified"
    assert derive_status([FlaggedClaim("a", "r", "medium")]) == "warning"
    assert (
        derive_status([FlaggedClaim("a", "r", "medium"), FlaggedClaim("b", "r", "high")])
        == "error"
    )


async def test_unsupported_article_is_high_severity_error(settings):
    def fact_check(prompt, system):
        # A checker that flags any article number absent from the sources
        answer = prompt.split("RESPONSE TO VERIFY:\n", 1)[1]
        sources = prompt.split("RESPONSE TO VERIFY:\n", 1)[0]
        flagged = []
        if "L313-11" in answer and "L313-11" not in sources:
            flagged.append(
                {
                    "claim": "Article L313-11 permet le renouvellement automatique",
                    "reason": "Article L313-11 does not appear in the sources",
                    "severity": "high",
                }
            )
        return json.dumps({"flagged": flagged, "confidence": 0.3})

    verifier, llm = _verifier(settings, fact_check)
    answer = (
        "Selon l'article L433-1, vous devez déposer la demande deux mois avant "
        "l'expiration [Source 1]. L'article L313-11 permet le renouvellement automatique."
    )
    result = await verifier.verify(answer, SOURCES)

    assert result.status == "error"
    assert result.checked
    assert result.confidence == pytest.approx(0.3)
    assert len(result.flagged_claims) == 1
    assert "L313-11" in result.flagged_claims[0].claim
    assert result.flagged_claims[0].severity == "high"
    assert llm.calls[0]["system"] == VERIFY_SYSTEM
    assert llm.calls[0]["json_output"] is True


async def test_clean_answer_verified(settings):
    verifier, _ = _verifier(settings, '{"flagged": [], "confidence": 0.95}')
    result = await verifier.verify("La demande se fait deux mois avant [Source 1].", SOURCES)
    assert result.status == "verified"
    assert result.confidence == pytest.approx(0.95)
    assert result.flagged_claims == []


async def test_medium_claims_are_warning(settings):
    verifier, _ = _verifier(
        settings,
        '```json\n{"flagged": [{"claim": "délai de 3 mois", "reason": "imprécis", '
        '"severity": "medium"}], "confidence": 0.7}\n```',
    )
    result = await verifier.verify("Un délai de 3 mois s'applique.", SOURCES)
    assert result.status == "warning"
    assert result.flagged_claims[0].claim == "délai de 3 mois"


async def test_unknown_severity_becomes_medium_and_bad_items_skipped(settings):
    payload = {
        "flagged": [
            {"claim": "montant de 300 euros", "reason": "absent", "severity": "critical"},
            {"reason": "no claim field"},
            "not a dict",
        ],
        "confidence": "high",
    }
    verifier, _ = _verifier(settings, json.dumps(payload))
    result = await verifier.verify("Le timbre coûte 300 euros.", SOURCES)
    assert [c.severity for c in result.flagged_claims] == ["medium"]
    assert result.status == "warning"
    assert result.confidence == pytest.approx(0.5)


async def test_confidence_is_clamped(settings):
    verifier, _ = _verifier(settings, '{"flagged": [], "confidence": 1.7}')
    result = await verifier.verify("Réponse.", SOURCES)
    assert result.confidence == 1.0


async def test_empty_answer_skips_check(settings):
    verifier, llm = _verifier(settings, "unused")
    result = await verifier.verify("   ", SOURCES)
    assert result.status == "verified"
    assert result.confidence == 1.0
    assert llm.calls == []


async def test_llm_failure_is_unchecked(settings):
    verifier, _ = _verifier(settings, RuntimeError("deadline exceeded"))
    result = await verifier.verify("Réponse avec article L433-1.", SOURCES)
    assert result.status == "verified"
    assert result.confidence == 0.0
    assert result.checked is False


async def test_unparseable_output_is_unchecked(settings):
    verifier, _ = _verifier(settings, "I cannot verify this.")
    result = await verifier.verify("Réponse.", SOURCES)
    assert result.checked is False
    assert result.confidence == 0.0


async def test_sources_are_clipped(settings):
    settings.verification_max_source_chars = 50
    verifier, llm = _verifier(settings, '{"flagged": [], "confidence": 0.9}')
    await verifier.verify("Réponse.", "S" * 500)
    assert "S" * 50 in llm.calls[0]["prompt"]
    assert "S" * 51 not in llm.calls[0]["prompt"]
