# ccc_retrieval/application/search_service.py

import logging
import time
from typing import List, Optional, Tuple

from ccc_retrieval.application.query_expander import SynonymExpander
from ccc_retrieval.application.query_rewriter import QueryRewriter
from ccc_retrieval.domain.errors import (
    EmbeddingFailed,
    RewriteFailed,
    SearchFailed,
    StoreUnavailable,
)
from ccc_retrieval.domain.interfaces import EmbeddingPort, ParagraphStorePort
from ccc_retrieval.domain.models import Paragraph, Provenance, SearchOutcome, SearchResult
from ccc_retrieval.util.timing import timed

logger = logging.getLogger(__name__)


RESULT_LIMIT = 10
KEYWORD_SUFFICIENCY_THRESHOLD = 5
KEYWORD_BOOST = 0.5
SIMILARITY_THRESHOLD = 0.3
SEARCH_TIME_BUDGET_SECONDS = 20.0


class _BudgetExhausted(Exception):
    pass


class HybridSearchService:
    """
    Cascading keyword -> semantic search over the paragraph corpus.

    Pipeline per request:
        1. Keyword search with the original query
        2. Enough keyword hits            → return them untouched ("keyword")
        3. Otherwise rewrite → expand → embed → vector search
        4. Fuse: boosted keyword hits first, then unseen semantic hits,
           sorted by score and capped ("hybrid" / "semantic")

    Keyword-stage failures abort the request. Semantic-stage failures fall
    back to the keyword hits when there are any.

    The service holds no per-request state; one instance serves every request.
    """

    def __init__(
        self,
        store: ParagraphStorePort,
        embedding_engine: EmbeddingPort,
        expander: SynonymExpander,
        rewriter: Optional[QueryRewriter] = None,
        result_limit: int = RESULT_LIMIT,
        sufficiency_threshold: int = KEYWORD_SUFFICIENCY_THRESHOLD,
        keyword_boost: float = KEYWORD_BOOST,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        time_budget_seconds: float = SEARCH_TIME_BUDGET_SECONDS,
    ):
        """
        Args:
            rewriter:              None skips the rewrite stage entirely.
            sufficiency_threshold: Keyword hit count at which the semantic
                                   fallback is skipped.
            keyword_boost:         Added to keyword scores before fusion so
                                   lexical matches outrank semantic-only ones.
            time_budget_seconds:   Wall-clock budget for one request; checked
                                   before every stage after keyword search.
        """
        self._store = store
        self._embedding_engine = embedding_engine
        self._expander = expander
        self._rewriter = rewriter
        self._result_limit = result_limit
        self._sufficiency_threshold = sufficiency_threshold
        self._keyword_boost = keyword_boost
        self._similarity_threshold = similarity_threshold
        self._time_budget_seconds = time_budget_seconds

    # ─── Indexing ────────────────────────────────────────────────────────────

    def build_index(self, paragraphs: List[Paragraph]) -> None:
        """Encode all paragraphs and persist them to the store."""
        if not paragraphs:
            raise ValueError("Paragraph list is empty — nothing to index.")

        with timed(logger, "index.encode", n=len(paragraphs)):
            embeddings = self._embedding_engine.encode([p.text for p in paragraphs])

        self._store.index_paragraphs(paragraphs, embeddings)
        logger.info("Index built: %d paragraphs", len(paragraphs))

    # ─── Search ──────────────────────────────────────────────────────────────

    def search(self, query: str) -> SearchOutcome:
        original = query.strip()
        if not original:
            raise ValueError("Query cannot be empty.")

        deadline = time.monotonic() + self._time_budget_seconds

        # ── 1. Keyword stage (fatal on failure) ──────────────────────────────
        try:
            with timed(logger, "search.keyword", limit=self._result_limit):
                keyword_results = self._store.search_keyword(original, self._result_limit)
        except StoreUnavailable as error:
            logger.error("Keyword search failed for %r: %s", original, error)
            raise SearchFailed(f"Keyword search failed: {error}") from error

        keyword_results = keyword_results[: self._result_limit]
        logger.info("Keyword search found %d results", len(keyword_results))

        # ── 2. Sufficiency check ──────────────────────────────────────────────
        if len(keyword_results) >= self._sufficiency_threshold:
            return SearchOutcome(
                query=original,
                results=keyword_results,
                provenance=Provenance.KEYWORD,
            )

        # ── 3-5. Semantic fallback ────────────────────────────────────────────
        warnings: List[str] = []
        try:
            semantic_results = self._semantic_stage(original, deadline, warnings)
        except (EmbeddingFailed, StoreUnavailable, _BudgetExhausted) as error:
            return self._degrade(original, keyword_results, error, warnings)

        # ── 6. Fusion ─────────────────────────────────────────────────────────
        results = self._fuse(keyword_results, semantic_results)
        provenance = Provenance.HYBRID if keyword_results else Provenance.SEMANTIC

        logger.info(
            "Search complete: provenance=%s keyword=%d semantic=%d returned=%d",
            provenance, len(keyword_results), len(semantic_results), len(results),
        )
        return SearchOutcome(
            query=original,
            results=results,
            provenance=provenance,
            warnings=tuple(warnings),
        )

    # ─── Private: Stages ─────────────────────────────────────────────────────

    def _semantic_stage(
        self,
        original: str,
        deadline: float,
        warnings: List[str],
    ) -> List[SearchResult]:
        rewritten, rewrite_warning = self._rewrite(original, deadline)
        if rewrite_warning:
            warnings.append(rewrite_warning)

        expanded = self._expander.expand(rewritten)
        if expanded != rewritten:
            logger.info("Synonym expansion applied: %r -> %r", rewritten, expanded)

        self._check_budget(deadline, "embed")
        with timed(logger, "search.embed", chars=len(expanded)):
            embedding = self._embed(expanded)

        self._check_budget(deadline, "vector")
        with timed(logger, "search.vector", threshold=self._similarity_threshold):
            return self._store.search_vector(
                embedding,
                threshold=self._similarity_threshold,
                limit=self._result_limit,
            )

    def _rewrite(self, original: str, deadline: float) -> Tuple[str, Optional[str]]:
        """
        Rewrite failures fall back to the original query; the search continues
        unrewritten and the fallback is reported as a warning.
        """
        if self._rewriter is None:
            return original, None

        self._check_budget(deadline, "rewrite")
        try:
            with timed(logger, "search.rewrite"):
                rewritten = self._rewriter.rewrite(original)
        except RewriteFailed as error:
            message = f"Query rewrite failed, using original query: {error}"
            logger.warning(message)
            return original, message

        logger.info("Query rewritten: %r -> %r", original, rewritten)
        return rewritten, None

    def _embed(self, text: str):
        try:
            return self._embedding_engine.encode_single(text)
        except EmbeddingFailed:
            raise
        except Exception as error:
            raise EmbeddingFailed(f"Embedding failed: {error}") from error

    def _check_budget(self, deadline: float, stage: str) -> None:
        if time.monotonic() >= deadline:
            raise _BudgetExhausted(
                f"Search time budget of {self._time_budget_seconds}s exhausted before {stage}"
            )

    def _degrade(
        self,
        original: str,
        keyword_results: List[SearchResult],
        error: Exception,
        warnings: List[str],
    ) -> SearchOutcome:
        if not keyword_results:
            logger.error("Semantic search failed with no keyword fallback: %s", error)
            raise SearchFailed(f"Semantic search failed: {error}") from error

        message = f"Semantic search failed, returning keyword results only: {error}"
        logger.warning(message)
        return SearchOutcome(
            query=original,
            results=keyword_results,
            provenance=Provenance.KEYWORD,
            degraded=True,
            warnings=tuple(warnings) + (message,),
        )

    # ─── Private: Fusion ─────────────────────────────────────────────────────

    def _fuse(
        self,
        keyword_results: List[SearchResult],
        semantic_results: List[SearchResult],
    ) -> List[SearchResult]:
        """
        Boosted keyword hits plus semantic hits not already present.
        Sorting is stable, so keyword hits win score ties.
        """
        combined: List[SearchResult] = []
        seen = set()

        for result in keyword_results:
            if result.paragraph_id in seen:
                continue
            seen.add(result.paragraph_id)
            combined.append(result.with_score(result.score + self._keyword_boost))

        for result in semantic_results:
            if result.paragraph_id in seen:
                continue
            seen.add(result.paragraph_id)
            combined.append(result)

        combined.sort(key=lambda r: r.score, reverse=True)
        return combined[: self._result_limit]
