# ccc_retrieval/application/query_expander.py

import re
from typing import List, Optional

from ccc_retrieval.domain.models import ExpansionPreview
from ccc_retrieval.domain.synonyms import DEFAULT_SYNONYMS, SynonymTable


OR_SEPARATOR = " OR "


class SynonymExpander:
    """
    Deterministic query expansion over a fixed term -> synonyms table.

    Each table term found in the query (case-insensitive substring) yields one
    variant per synonym, with every occurrence of the term replaced literally.
    The original query leads, variants follow in table order, and the whole
    set is joined with " OR ". Queries without a match come back unchanged.
    """

    def __init__(self, synonyms: Optional[SynonymTable] = None):
        table = DEFAULT_SYNONYMS if synonyms is None else synonyms
        # Snapshot so later mutation of the caller's mapping cannot leak in.
        self._synonyms = tuple(
            (term.lower(), tuple(alternates)) for term, alternates in table.items()
        )

    def expand(self, query: str) -> str:
        original = query.strip()
        variants = self._variants(original)

        if len(variants) > 1:
            return OR_SEPARATOR.join(variants)
        return original

    def preview(self, query: str) -> ExpansionPreview:
        """Which terms matched and what the expansion would be."""
        original = query.strip()
        return ExpansionPreview(
            original_query=original,
            matched_terms=self._matched_terms(original),
            expanded_query=self.expand(original),
        )

    # ─── Private ─────────────────────────────────────────────────────────────

    def _matched_terms(self, query: str) -> List[str]:
        lowered = query.lower()
        return [term for term, _ in self._synonyms if term in lowered]

    def _variants(self, original: str) -> List[str]:
        lowered = original.lower()
        variants = [original]

        for term, alternates in self._synonyms:
            if term not in lowered:
                continue

            pattern = re.compile(re.escape(term), re.IGNORECASE)
            for synonym in alternates:
                # Callable replacement keeps backslashes in synonyms literal
                variant = pattern.sub(lambda _match, s=synonym: s, original)
                if variant != original and variant not in variants:
                    variants.append(variant)

        return variants
