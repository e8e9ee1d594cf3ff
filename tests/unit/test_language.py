"""Tests for text normalization and language detection."""

from procedure_rag.query.language import detect_language, normalize_text


def test_pure_hangul_is_korean():
    assert detect_language("체류증갱신방법") == "ko"


def test_short_text_with_any_hangul_is_korean():
    assert detect_language("visa 갱신") == "ko"


def test_long_text_with_sparse_hangul_is_not_korean():
    text = "I need help with my residence permit renewal, the word is 갱"
    assert detect_language(text) == "en"


def test_french_markers_win():
    assert detect_language("comment faire une demande pour le travail") == "fr"


def test_english_markers_win():
    assert detect_language("What documents do I need for the work permit?") == "en"


def test_tie_defaults_to_french():
    assert detect_language("passport renewal") == "fr"
    assert detect_language("") == "fr"


def test_diacritics_add_french_bonus():
    # 1 English marker vs 0 French markers, but "é" adds 2 to French
    assert detect_language("is préfecture") == "fr"


def test_french_terms_in_english_sentence_can_tip_to_french():
    # how/do/my (3) against titre/de (2) plus the diacritic bonus (2)
    assert detect_language("How do I renew my titre de séjour?") == "fr"


def test_normalize_text_collapses_whitespace():
    assert normalize_text("  titre   de\tséjour \n") == "titre de séjour"


def test_normalize_text_applies_nfkc():
    # U+FB01 ligature and full-width letters fold to plain ASCII
    assert normalize_text("ﬁn ＡＢＣ") == "fin ABC"
