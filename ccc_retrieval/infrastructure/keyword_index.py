# ccc_retrieval/infrastructure/keyword_index.py

import re
from typing import FrozenSet, List, Optional, Sequence, Tuple

import numpy as np
from rank_bm25 import BM25Okapi


# Function words carry no lexical signal for doctrinal search; dropping them
# keeps "What is prayer?" from matching every paragraph that contains "is".
STOPWORDS = frozenset("""
    a an and are as at be but by can did do does for from had has have her his
    how i if in into is it its may me my no not of on or our out she should so
    that the their them then there these they this those to was we were what
    when where which who whom why will with would you your
""".split())

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


def tokenize(text: str) -> List[str]:
    """Lower-cased alphanumeric words, stopwords removed."""
    return [
        token for token in _TOKEN_PATTERN.findall(text.lower())
        if token not in STOPWORDS
    ]


class KeywordIndex:
    """
    In-memory BM25 index over paragraph texts.

    Relevance is the BM25 score divided by the best score for the query, so
    hits lie in (0, 1] like cosine similarities. A paragraph is a hit only
    when it contains every query token; BM25 then orders the hits.
    """

    def __init__(self) -> None:
        self._bm25: Optional[BM25Okapi] = None
        self._ids: List[int] = []
        self._texts: List[str] = []
        self._token_sets: List[FrozenSet[str]] = []

    @property
    def size(self) -> int:
        return len(self._ids)

    def build(self, ids: Sequence[int], texts: Sequence[str]) -> None:
        """Build BM25 index from scratch over the given corpus."""
        if len(ids) != len(texts):
            raise ValueError("ids and texts must have the same length.")
        self._ids = list(ids)
        self._texts = list(texts)
        tokenized = [tokenize(text) for text in texts]
        self._token_sets = [frozenset(tokens) for tokens in tokenized]
        self._bm25 = BM25Okapi(tokenized) if texts else None

    def search(self, query: str, limit: int) -> List[Tuple[int, str, float]]:
        """Top `limit` (paragraph_id, text, relevance) tuples, best first."""
        if self._bm25 is None or limit <= 0:
            return []

        query_tokens = tokenize(query)
        if not query_tokens:
            return []

        required = set(query_tokens)
        candidates = np.array(
            [i for i, tokens in enumerate(self._token_sets) if required <= tokens],
            dtype=int,
        )
        if candidates.size == 0:
            return []

        scores = np.asarray(self._bm25.get_scores(query_tokens), dtype=float)
        positive = candidates[scores[candidates] > 0]
        if positive.size == 0:
            return []

        # Stable sort on the negated scores: equal scores keep corpus order.
        order = positive[np.argsort(-scores[positive], kind="stable")][:limit]
        best = float(scores[order[0]])

        return [
            (self._ids[i], self._texts[i], float(scores[i]) / best)
            for i in order
        ]
