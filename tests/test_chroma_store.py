# tests/test_chroma_store.py

import numpy as np
import pytest

from ccc_retrieval.domain.errors import StoreUnavailable
from ccc_retrieval.domain.models import Paragraph
from ccc_retrieval.infrastructure.chroma_store import ChromaParagraphStore


TEXTS = [
    "The desire for God is written in the human heart.",
    "Prayer is the raising of one's mind and heart to God.",
    "Baptism is the basis of the whole Christian life.",
    "Marriage is a covenant between a man and a woman.",
    "Purgatory is a final purification of the elect.",
]


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def store(tmp_path) -> ChromaParagraphStore:
    """Fresh ChromaParagraphStore backed by a temp directory for each test."""
    return ChromaParagraphStore(
        persist_directory=str(tmp_path / "chroma_test"),
        embedding_model_name="test-model-v1",
    )


def _paragraphs(first_id: int = 27):
    return [Paragraph(id=i, text=t) for i, t in enumerate(TEXTS, start=first_id)]


def _unit_embeddings(n: int = len(TEXTS)) -> np.ndarray:
    """Orthogonal unit vectors, one per paragraph."""
    return np.eye(n, dtype=np.float32)


# ── Readiness ─────────────────────────────────────────────────────────────────

def test_is_ready_false_when_empty(store):
    assert store.is_ready() is False
    assert store.paragraph_count() == 0
    assert store.embedding_dimension is None


def test_is_ready_true_after_indexing(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())
    assert store.is_ready() is True


def test_count_excludes_metadata_sentinel(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())
    assert store.paragraph_count() == 5
    assert store.embedding_dimension == 5


def test_upsert_is_idempotent(store):
    """Indexing the same paragraphs twice should not duplicate entries."""
    store.index_paragraphs(_paragraphs(), _unit_embeddings())
    store.index_paragraphs(_paragraphs(), _unit_embeddings())
    assert store.paragraph_count() == 5


# ── Vector search ─────────────────────────────────────────────────────────────

def test_vector_search_top_result_is_most_similar(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())

    query = np.array([0.0, 0.0, 0.6, 0.8, 0.0], dtype=np.float32)
    results = store.search_vector(query, threshold=0.3, limit=10)

    assert [r.paragraph_id for r in results] == [30, 29]
    assert results[0].score == pytest.approx(0.8, abs=1e-4)
    assert results[1].score == pytest.approx(0.6, abs=1e-4)


def test_vector_search_never_returns_sentinel(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())

    # Sentinel's placeholder vector is [1, 0, 0, 0, 0].
    query = np.array([1.0, 0.0, 0.0, 0.0, 0.0], dtype=np.float32)
    results = store.search_vector(query, threshold=0.0, limit=10)

    assert results[0].paragraph_id == 27
    assert all(isinstance(r.paragraph_id, int) for r in results)
    assert len(results) <= 5


def test_vector_search_respects_limit(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())

    query = np.ones(5, dtype=np.float32) / np.sqrt(5)
    results = store.search_vector(query, threshold=0.0, limit=2)

    assert len(results) == 2


def test_vector_search_on_empty_store_returns_nothing(store):
    assert store.search_vector(np.ones(5), threshold=0.3, limit=10) == []


# ── Keyword search & range fetch ──────────────────────────────────────────────

def test_keyword_search_over_persisted_documents(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())

    results = store.search_keyword("baptism", limit=10)

    assert [r.paragraph_id for r in results] == [29]


def test_keyword_index_is_rebuilt_on_reopen(tmp_path):
    persist_dir = str(tmp_path / "chroma_reopen_test")
    first = ChromaParagraphStore(persist_dir, embedding_model_name="model-v1")
    first.index_paragraphs(_paragraphs(), _unit_embeddings())

    reopened = ChromaParagraphStore(persist_dir, embedding_model_name="model-v1")

    assert reopened.is_ready() is True
    assert [r.paragraph_id for r in reopened.search_keyword("purgatory", 10)] == [31]


def test_fetch_range_is_inclusive_and_ordered(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())

    paragraphs = store.fetch_range(28, 30)

    assert [p.id for p in paragraphs] == [28, 29, 30]
    assert paragraphs[1].text == TEXTS[2]


def test_fetch_range_outside_corpus_is_empty(store):
    store.index_paragraphs(_paragraphs(), _unit_embeddings())
    assert store.fetch_range(100, 105) == []


# ── Fingerprinting ────────────────────────────────────────────────────────────

def test_model_fingerprint_mismatch_triggers_reindex(tmp_path):
    """Changing the model name should invalidate the existing index."""
    persist_dir = str(tmp_path / "chroma_fingerprint_test")

    store_v1 = ChromaParagraphStore(persist_dir, embedding_model_name="model-v1")
    store_v1.index_paragraphs(_paragraphs(), _unit_embeddings())
    assert store_v1.is_ready() is True

    store_v2 = ChromaParagraphStore(persist_dir, embedding_model_name="model-v2")
    assert store_v2.is_ready() is False

    # Reindexing under the new model replaces the stale collection.
    store_v2.index_paragraphs(_paragraphs()[:3], np.eye(3, dtype=np.float32))
    assert store_v2.is_ready() is True
    assert store_v2.paragraph_count() == 3
    assert store_v2.embedding_dimension == 3


# ── Errors ────────────────────────────────────────────────────────────────────

def test_empty_paragraph_list_raises(store):
    with pytest.raises(ValueError, match="empty"):
        store.index_paragraphs([], np.zeros((0, 5)))


def test_mismatched_embeddings_raise(store):
    with pytest.raises(ValueError):
        store.index_paragraphs(_paragraphs(), np.eye(3, dtype=np.float32))


def test_init_raises_clean_error_on_bad_path(tmp_path):
    """A file where the directory should be is reported as StoreUnavailable."""
    bad_path = tmp_path / "not_a_directory"
    bad_path.write_text("occupied")

    with pytest.raises(StoreUnavailable, match="Failed to initialize ChromaDB"):
        ChromaParagraphStore(
            persist_directory=str(bad_path),
            embedding_model_name="test-model",
        )


def test_keyword_rebuild_failure_on_open_is_store_unavailable(tmp_path, monkeypatch):
    persist_dir = str(tmp_path / "chroma_rebuild_test")
    ChromaParagraphStore(persist_dir, "model-v1").index_paragraphs(
        _paragraphs(), _unit_embeddings()
    )

    def broken(self):
        raise RuntimeError("collection read failed")

    monkeypatch.setattr(ChromaParagraphStore, "_rebuild_keyword_index", broken)

    with pytest.raises(StoreUnavailable, match="Failed to initialize ChromaDB"):
        ChromaParagraphStore(persist_dir, "model-v1")
