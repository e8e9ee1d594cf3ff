"""Text preprocessing for BM25 keyword search."""

from __future__ import annotations

import re

from procedure_rag.config.constants import STOPWORDS

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    """Tokenize text for BM25: lowercase, strip punctuation and elisions, remove stopwords."""
    text = _PUNCTUATION_RE.sub(" ", text.lower())
    return [t for t in text.split() if t not in STOPWORDS and len(t) > 1]
