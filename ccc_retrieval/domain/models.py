# ccc_retrieval/domain/models.py

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class Provenance(str, Enum):
    """Which retrieval path(s) produced a result set."""
    KEYWORD = "keyword"
    HYBRID = "hybrid"
    SEMANTIC = "semantic"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Paragraph:
    """
    One numbered paragraph of the corpus. Owned by the store, never mutated.
    """
    id: int
    text: str


@dataclass(frozen=True)
class SearchResult:
    """
    A scored hit for one query.
    Score meaning depends on the source: keyword relevance, cosine similarity,
    or boosted keyword relevance after fusion.
    """
    paragraph_id: int
    text: str
    score: float

    def with_score(self, score: float) -> "SearchResult":
        return SearchResult(paragraph_id=self.paragraph_id, text=self.text, score=score)

    def __repr__(self) -> str:
        preview = self.text[:80].replace("\n", " ")
        return (
            f"SearchResult(score={self.score:.4f}, "
            f"paragraph={self.paragraph_id}, "
            f"preview='{preview}...')"
        )


@dataclass(frozen=True)
class ReferenceSpec:
    """Inclusive paragraph range, already validated against the corpus bounds."""
    start: int
    end: int

    @property
    def is_single(self) -> bool:
        return self.start == self.end

    @property
    def reference(self) -> str:
        return str(self.start) if self.is_single else f"{self.start}-{self.end}"


@dataclass(frozen=True)
class SearchOutcome:
    query: str
    results: List[SearchResult]
    provenance: Provenance
    degraded: bool = False
    warnings: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ExpansionPreview:
    original_query: str
    matched_terms: List[str]
    expanded_query: str

    @property
    def has_expansion(self) -> bool:
        return self.expanded_query != self.original_query
