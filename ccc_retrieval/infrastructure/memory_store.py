# ccc_retrieval/infrastructure/memory_store.py

import logging
import numpy as np
from typing import Dict, List, Optional

from ccc_retrieval.domain.interfaces import ParagraphStorePort
from ccc_retrieval.domain.models import Paragraph, SearchResult
from ccc_retrieval.infrastructure.keyword_index import KeywordIndex

logger = logging.getLogger(__name__)


class InMemoryParagraphStore(ParagraphStorePort):
    """
    In-memory paragraph store:
    - Keyword relevance via BM25
    - Cosine similarity as a dot product on L2-normalised embeddings
    Nothing persists between sessions.
    """

    def __init__(self):
        self._paragraphs: Dict[int, Paragraph] = {}
        self._ids: List[int] = []
        self._embedding_matrix: np.ndarray | None = None
        self._keyword_index = KeywordIndex()

    def index_paragraphs(self, paragraphs: List[Paragraph], embeddings: np.ndarray) -> None:
        if not paragraphs:
            raise ValueError("Cannot index an empty paragraph list.")

        embeddings = np.asarray(embeddings, dtype=np.float32)
        if embeddings.ndim != 2 or embeddings.shape[0] != len(paragraphs):
            raise ValueError(
                f"Expected {len(paragraphs)} embeddings, got shape {embeddings.shape}."
            )
        if self._embedding_matrix is not None and embeddings.shape[1] != self._embedding_matrix.shape[1]:
            raise ValueError(
                f"Embedding dimension {embeddings.shape[1]} does not match "
                f"stored dimension {self._embedding_matrix.shape[1]}."
            )

        # Upsert by paragraph id, then rebuild the dense and sparse indexes.
        vectors = {}
        if self._embedding_matrix is not None:
            vectors = dict(zip(self._ids, self._embedding_matrix))
        for paragraph, vector in zip(paragraphs, embeddings):
            self._paragraphs[paragraph.id] = paragraph
            vectors[paragraph.id] = vector

        self._ids = sorted(self._paragraphs)
        self._embedding_matrix = _normalize(np.stack([vectors[i] for i in self._ids]))
        self._keyword_index.build(
            self._ids, [self._paragraphs[i].text for i in self._ids]
        )
        logger.info(
            "Indexed %d paragraphs. Matrix shape: %s",
            len(paragraphs), self._embedding_matrix.shape,
        )

    def is_ready(self) -> bool:
        """Ready only when explicitly indexed this session."""
        return self._embedding_matrix is not None

    def paragraph_count(self) -> int:
        return len(self._ids)

    @property
    def embedding_dimension(self) -> Optional[int]:
        if self._embedding_matrix is None:
            return None
        return int(self._embedding_matrix.shape[1])

    def search_keyword(self, query: str, limit: int) -> List[SearchResult]:
        return [
            SearchResult(paragraph_id=pid, text=text, score=score)
            for pid, text, score in self._keyword_index.search(query, limit)
        ]

    def search_vector(
        self,
        embedding: np.ndarray,
        threshold: float,
        limit: int,
    ) -> List[SearchResult]:
        if self._embedding_matrix is None or limit <= 0:
            return []

        query = _normalize(np.asarray(embedding, dtype=np.float32).reshape(1, -1))[0]
        scores = self._embedding_matrix @ query
        candidates = np.flatnonzero(scores >= threshold)
        ranked = candidates[np.argsort(-scores[candidates], kind="stable")][:limit]

        return [
            SearchResult(
                paragraph_id=self._ids[i],
                text=self._paragraphs[self._ids[i]].text,
                score=float(scores[i]),
            )
            for i in ranked
        ]

    def fetch_range(self, start: int, end: int) -> List[Paragraph]:
        return [
            self._paragraphs[pid]
            for pid in range(start, end + 1)
            if pid in self._paragraphs
        ]


def _normalize(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms
