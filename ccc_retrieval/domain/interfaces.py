# ccc_retrieval/domain/interfaces.py

from abc import ABC, abstractmethod
from typing import List, Optional
import numpy as np

from .models import Paragraph, SearchResult


class EmbeddingPort(ABC):
    """
    Port for any embedding engine.
    Vectors are L2-normalised so cosine similarity is a dot product.
    """

    @property
    @abstractmethod
    def dimension(self) -> int: ...

    @abstractmethod
    def encode(self, texts: List[str]) -> np.ndarray: ...

    @abstractmethod
    def encode_single(self, text: str) -> np.ndarray: ...


class CompletionPort(ABC):

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str) -> str: ...


class ParagraphStorePort(ABC):
    """
    Read side used by the search and lookup paths, plus the write side used
    once at startup to populate the corpus.
    """

    @abstractmethod
    def search_keyword(self, query: str, limit: int) -> List[SearchResult]:
        """Relevance-ordered lexical hits, at most `limit`. Empty list on no match."""
        ...

    @abstractmethod
    def search_vector(
        self,
        embedding: np.ndarray,
        threshold: float,
        limit: int,
    ) -> List[SearchResult]:
        """Nearest paragraphs with cosine similarity >= threshold, best first."""
        ...

    @abstractmethod
    def fetch_range(self, start: int, end: int) -> List[Paragraph]:
        """All paragraphs with start <= id <= end, ascending. Empty list if none."""
        ...

    @abstractmethod
    def index_paragraphs(self, paragraphs: List[Paragraph], embeddings: np.ndarray) -> None: ...

    @abstractmethod
    def is_ready(self) -> bool: ...

    @abstractmethod
    def paragraph_count(self) -> int: ...

    @property
    @abstractmethod
    def embedding_dimension(self) -> Optional[int]:
        """Dimensionality of the stored vectors, None while the store is empty."""
        ...
