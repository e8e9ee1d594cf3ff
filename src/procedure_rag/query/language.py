"""Text normalization and fr/en/ko language detection."""

from __future__ import annotations

import re
import unicodedata

from procedure_rag.config.constants import (
    ENGLISH_MARKERS,
    FRENCH_DIACRITIC_BONUS,
    FRENCH_DIACRITICS_RE,
    FRENCH_MARKERS,
    HANGUL_ANY_RE,
    HANGUL_RATIO_THRESHOLD,
    HANGUL_SHORT_TEXT_LENGTH,
    HANGUL_SYLLABLES_RE,
    NON_LETTER_RE,
)


def normalize_text(text: str) -> str:
    text = unicodedata.normalize("NFKC", text)
    return re.sub(r"\s+", " ", text).strip()


def detect_language(text: str) -> str:
    """Classify text as "fr", "en" or "ko".

    Korean wins on Hangul density, or on any Hangul at all in short inputs.
    Otherwise French and English marker words are counted, with a bonus for
    French diacritics. Ties resolve to French, the corpus language.
    """
    if text:
        hangul = len(HANGUL_SYLLABLES_RE.findall(text))
        if hangul / len(text) > HANGUL_RATIO_THRESHOLD:
            return "ko"
        if len(text) < HANGUL_SHORT_TEXT_LENGTH and HANGUL_ANY_RE.search(text):
            return "ko"

    words = NON_LETTER_RE.sub(" ", text.lower()).split()

    fr_score = sum(1 for w in words if w in FRENCH_MARKERS)
    en_score = sum(1 for w in words if w in ENGLISH_MARKERS)
    if FRENCH_DIACRITICS_RE.search(text):
        fr_score += FRENCH_DIACRITIC_BONUS

    return "en" if en_score > fr_score else "fr"
