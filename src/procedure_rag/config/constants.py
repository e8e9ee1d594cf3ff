"""Fixed tables and constants that are not meant to be tuned per deployment."""

from __future__ import annotations

import re

# Language detection
HANGUL_SYLLABLES_RE = re.compile(r"[\uAC00-\uD7AF]")
HANGUL_ANY_RE = re.compile(r"[\uAC00-\uD7AF\u1100-\u11FF\u3130-\u318F]")
HANGUL_RATIO_THRESHOLD = 0.1
HANGUL_SHORT_TEXT_LENGTH = 20
NON_LETTER_RE = re.compile(r"[^a-zA-Z\u00C0-\u024F\uAC00-\uD7AF\s]")
FRENCH_DIACRITICS_RE = re.compile(r"[éèêëàâäôùûüîïçœæ]", re.IGNORECASE)
FRENCH_DIACRITIC_BONUS = 2

# Common French words unlikely to appear in English
FRENCH_MARKERS = frozenset({
    "le", "la", "les", "un", "une", "des", "du", "de", "et", "est", "en",
    "au", "aux", "ce", "cette", "ces", "je", "tu", "il", "elle", "nous",
    "vous", "ils", "elles", "mon", "ton", "son", "ma", "ta", "sa", "mes",
    "ses", "notre", "votre", "leur", "que", "qui", "quoi", "dans", "pour",
    "sur", "avec", "par", "pas", "plus", "mais", "ou", "donc", "car",
    "comment", "travail", "titre", "carte", "droit", "demande",
})

# Common English words that are NOT also common French words
ENGLISH_MARKERS = frozenset({
    "the", "is", "are", "was", "were", "has", "have", "had", "do", "does",
    "did", "will", "would", "could", "should", "can", "may", "might",
    "shall", "this", "that", "these", "those", "it", "its", "my", "your",
    "his", "her", "our", "their", "what", "which", "who", "how", "when",
    "where", "why", "not", "but", "and", "with", "from", "about", "into",
    "through", "during", "before", "after", "above", "below", "between",
    "work", "visa", "permit", "residence", "tax", "health", "insurance",
})

# Retrieval
RRF_K = 60
LAW_ARTICLE_DOC_TYPE = "law_article"
CROSS_REFERENCES_KEY = "cross_references"
KEYWORD_QUERY_SEPARATOR = " | "

# Token estimation
TIKTOKEN_ENCODING = "o200k_base"
PER_MESSAGE_OVERHEAD = 4
REPLY_PRIMING = 2

# Prompt clipping
REFORMULATION_MESSAGE_CHARS = 300
SUMMARY_MESSAGE_CHARS = 500
SUMMARY_FALLBACK_CHARS = 500
NORMALIZER_MAX_TOKENS = 256
SUMMARY_MAX_TOKENS = 512
MAX_EXPANSIONS = 3

SUMMARY_PREFIX = "[Previous conversation summary]"
SUMMARY_ACKNOWLEDGEMENT = "Understood. I have the context from our previous conversation."

# BM25 tokenizer stopwords (French + English)
STOPWORDS = frozenset({
    "le", "la", "les", "un", "une", "des", "du", "de", "et", "est", "en", "au",
    "aux", "ce", "ces", "cette", "je", "tu", "il", "elle", "nous", "vous", "ils",
    "elles", "que", "qui", "quoi", "dans", "pour", "sur", "avec", "par", "pas",
    "ou", "mais", "donc", "car", "ne", "se", "sa", "son", "ses", "leur", "leurs",
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "of", "to", "in",
    "on", "at", "by", "for", "with", "and", "or", "not", "this", "that", "it",
    "its", "as", "from", "how", "what", "do", "does", "my", "i",
})
