"""Tests for the BM25 tokenizer and keyword index."""

from procedure_rag.keyword_search.bm25_index import BM25Index
from procedure_rag.keyword_search.tokenizer import tokenize


def test_tokenize_lowercases_and_drops_stopwords():
    assert tokenize("Le Titre de Séjour") == ["titre", "séjour"]


def test_tokenize_splits_elisions_and_punctuation():
    assert tokenize("l'expiration, d'une carte !") == ["expiration", "carte"]


def test_tokenize_drops_single_characters():
    assert tokenize("a b c visa") == ["visa"]


def test_tokenize_keeps_article_numbers():
    assert "l433" in tokenize("Article L433-1")


def test_tokenize_empty():
    assert tokenize("") == []


def test_bm25_ranks_matching_documents():
    index = BM25Index()
    index.build(
        [
            ("vitale", "Carte Vitale et Assurance maladie"),
            ("sejour", "Renouvellement du titre de séjour en préfecture"),
            ("impots", "Déclaration de revenus aux impôts"),
        ]
    )
    results = index.search("renouvellement titre de séjour", top_k=5)
    assert [doc_id for doc_id, _ in results] == ["sejour"]
    assert results[0][1] > 0
    assert index.size == 3


def test_bm25_empty_index_and_query():
    index = BM25Index()
    assert index.search("séjour") == []
    index.build([("a", "le la les")])
    assert index.search("séjour") == []
    index.build([("a", "titre"), ("b", "carte"), ("c", "visa")])
    assert index.search("le de") == []
