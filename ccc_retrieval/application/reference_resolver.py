# ccc_retrieval/application/reference_resolver.py

import logging
import re
from typing import List, Optional

from ccc_retrieval.domain.errors import (
    InvalidRange,
    NotAReference,
    OutOfRange,
    ParagraphNotFound,
)
from ccc_retrieval.domain.interfaces import ParagraphStorePort
from ccc_retrieval.domain.models import Paragraph, ReferenceSpec

logger = logging.getLogger(__name__)


MAX_RANGE = 10

_RANGE_TAIL = r"(\d+)(?:\s*-\s*(\d+))?"

# Precedence order: bare number/range, "CCC", word prefix, hash prefix.
REFERENCE_PATTERNS = (
    re.compile(rf"^{_RANGE_TAIL}$", re.ASCII),
    re.compile(rf"^ccc\s+{_RANGE_TAIL}$", re.IGNORECASE | re.ASCII),
    re.compile(rf"^(?:paragraph|para|p)\s+{_RANGE_TAIL}$", re.IGNORECASE | re.ASCII),
    re.compile(rf"^#{_RANGE_TAIL}$", re.ASCII),
)


class ParagraphReferenceResolver:
    """
    Recognises paragraph references such as "283", "283-284", "CCC 283",
    "para 283-284" or "#283" and fetches the paragraphs they name.

    The same input box takes references and free-text questions, so a token
    that fails to parse is a routing signal rather than an error:
    `resolve()` returns None and the caller searches instead. `parse()` keeps
    the specific reason for endpoints that only accept references.
    """

    def __init__(
        self,
        store: ParagraphStorePort,
        corpus_size: int,
        max_range: int = MAX_RANGE,
    ):
        if corpus_size < 1:
            raise ValueError("corpus_size must be at least 1.")
        if max_range < 1:
            raise ValueError("max_range must be at least 1.")
        self._store = store
        self._corpus_size = corpus_size
        self._max_range = max_range

    @property
    def corpus_size(self) -> int:
        return self._corpus_size

    @property
    def max_range(self) -> int:
        return self._max_range

    def parse(self, token: str) -> ReferenceSpec:
        """
        Raises:
            NotAReference: token has no reference shape.
            OutOfRange:    a number falls outside [1, corpus_size].
            InvalidRange:  start > end, or more than max_range paragraphs.
        """
        text = (token or "").strip()

        for pattern in REFERENCE_PATTERNS:
            match = pattern.match(text)
            if match:
                start = int(match.group(1))
                end = int(match.group(2)) if match.group(2) else start
                return self._validate(start, end)

        raise NotAReference(f"'{text}' is not a paragraph reference.")

    def resolve(self, token: str) -> Optional[ReferenceSpec]:
        try:
            return self.parse(token)
        except NotAReference as reason:
            logger.debug("Not a reference, treating as search: %s", reason)
            return None

    def fetch(self, spec: ReferenceSpec) -> List[Paragraph]:
        """Paragraphs of a validated reference, ascending; never empty."""
        paragraphs = self._store.fetch_range(spec.start, spec.end)
        if not paragraphs:
            raise ParagraphNotFound(f"Paragraph(s) {spec.reference} not found.")
        logger.info("Fetched paragraphs %s (%d rows)", spec.reference, len(paragraphs))
        return paragraphs

    def lookup(self, token: str) -> List[Paragraph]:
        return self.fetch(self.parse(token))

    # ─── Private ─────────────────────────────────────────────────────────────

    def _validate(self, start: int, end: int) -> ReferenceSpec:
        if start < 1 or end > self._corpus_size:
            raise OutOfRange(
                f"Paragraph numbers must be between 1 and {self._corpus_size}."
            )
        if start > end:
            raise InvalidRange("Range start must not exceed range end.")
        if end - start > self._max_range - 1:
            raise InvalidRange(
                f"Range too large. Maximum {self._max_range} paragraphs allowed."
            )
        return ReferenceSpec(start=start, end=end)
