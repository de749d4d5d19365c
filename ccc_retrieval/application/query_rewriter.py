# ccc_retrieval/application/query_rewriter.py

import logging

from ccc_retrieval.domain.errors import RewriteFailed
from ccc_retrieval.domain.interfaces import CompletionPort

logger = logging.getLogger(__name__)


DEFAULT_REWRITE_PROMPT = (
    "You rewrite search queries for the Catechism of the Catholic Church.\n"
    "Restate the user's question using the canonical doctrinal vocabulary the "
    "Catechism itself uses (e.g. 'sacrament of Penance' rather than 'confession', "
    "'Eucharist' rather than 'communion').\n"
    "Rules:\n"
    "- Preserve the user's intent exactly; do not answer the question.\n"
    "- Return a single line containing only the rewritten query.\n"
    "- No quotes, no preamble, no explanations.\n"
)


class QueryRewriter:
    """
    One-shot LLM reformulation of a colloquial query.
    No retries and no output validation beyond non-empty.
    """

    def __init__(self, completion: CompletionPort, system_prompt: str = DEFAULT_REWRITE_PROMPT):
        self._completion = completion
        self._system_prompt = system_prompt

    def rewrite(self, query: str) -> str:
        try:
            raw = self._completion.complete(self._system_prompt, query)
        except RewriteFailed:
            raise
        except Exception as error:
            raise RewriteFailed(f"Completion provider failed: {error}") from error

        rewritten = (raw or "").strip().strip('"').strip()
        if not rewritten:
            raise RewriteFailed("Completion provider returned an empty rewrite.")

        logger.debug("rewrite original=%r rewritten=%r", query, rewritten)
        return rewritten
