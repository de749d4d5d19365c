# tests/test_memory_store.py

import numpy as np
import pytest

from ccc_retrieval.domain.models import Paragraph
from ccc_retrieval.infrastructure.memory_store import InMemoryParagraphStore


TEXTS = [
    "The desire for God is written in the human heart.",
    "Prayer is the raising of one's mind and heart to God.",
    "Baptism is the basis of the whole Christian life.",
    "Marriage is a covenant between a man and a woman.",
    "Purgatory is a final purification of the elect.",
]


@pytest.fixture
def store():
    store = InMemoryParagraphStore()
    paragraphs = [Paragraph(id=i, text=t) for i, t in enumerate(TEXTS, start=27)]
    store.index_paragraphs(paragraphs, np.eye(len(TEXTS), dtype=np.float32))
    return store


def test_not_ready_before_indexing():
    store = InMemoryParagraphStore()
    assert store.is_ready() is False
    assert store.paragraph_count() == 0
    assert store.embedding_dimension is None
    assert store.search_vector(np.ones(3), threshold=0.0, limit=5) == []


def test_ready_after_indexing(store):
    assert store.is_ready() is True
    assert store.paragraph_count() == 5
    assert store.embedding_dimension == 5


def test_vector_search_ranks_by_cosine_similarity(store):
    query = np.array([0.0, 0.0, 3.0, 4.0, 0.0], dtype=np.float32)

    results = store.search_vector(query, threshold=0.3, limit=10)

    assert [r.paragraph_id for r in results] == [30, 29]
    assert results[0].score == pytest.approx(0.8)
    assert results[1].score == pytest.approx(0.6)


def test_vector_search_drops_hits_below_threshold(store):
    query = np.array([0.2, 0.0, 0.0, 0.0, 1.0], dtype=np.float32)

    results = store.search_vector(query, threshold=0.3, limit=10)

    assert [r.paragraph_id for r in results] == [31]


def test_vector_search_respects_limit(store):
    query = np.ones(5, dtype=np.float32)
    assert len(store.search_vector(query, threshold=0.0, limit=2)) == 2


def test_keyword_search_returns_search_results(store):
    results = store.search_keyword("baptism", limit=10)

    assert len(results) == 1
    assert results[0].paragraph_id == 29
    assert results[0].score == pytest.approx(1.0)


def test_fetch_range_is_inclusive_and_ordered(store):
    paragraphs = store.fetch_range(28, 30)
    assert [p.id for p in paragraphs] == [28, 29, 30]


def test_fetch_range_skips_missing_numbers(store):
    assert [p.id for p in store.fetch_range(30, 40)] == [30, 31]
    assert store.fetch_range(100, 105) == []


def test_reindexing_upserts_by_paragraph_id(store):
    store.index_paragraphs(
        [Paragraph(id=27, text="Revised text about the longing for God.")],
        np.array([[0.0, 1.0, 0.0, 0.0, 0.0]], dtype=np.float32),
    )

    assert store.paragraph_count() == 5
    assert store.fetch_range(27, 27)[0].text.startswith("Revised")
    assert store.search_keyword("longing", limit=5)[0].paragraph_id == 27


def test_index_rejects_mismatched_embeddings():
    store = InMemoryParagraphStore()
    with pytest.raises(ValueError):
        store.index_paragraphs([Paragraph(id=1, text="a")], np.ones((2, 3)))


def test_index_rejects_dimension_change(store):
    with pytest.raises(ValueError, match="dimension"):
        store.index_paragraphs([Paragraph(id=99, text="x")], np.ones((1, 3)))


def test_index_rejects_empty_list():
    with pytest.raises(ValueError):
        InMemoryParagraphStore().index_paragraphs([], np.zeros((0, 3)))
