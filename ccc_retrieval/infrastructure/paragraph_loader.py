# ccc_retrieval/infrastructure/paragraph_loader.py

import json
import logging
import re
from pathlib import Path
from typing import List

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from ccc_retrieval.domain.models import Paragraph

logger = logging.getLogger(__name__)


class _ParagraphRecord(BaseModel):
    # Scraper output uses {id, text}; database exports use {paragraph_number, content}.
    id: int = Field(validation_alias=AliasChoices("id", "paragraph_number"), ge=1)
    text: str = Field(validation_alias=AliasChoices("text", "content"), min_length=1)


class ParagraphLoader:
    """
    Reads an already-scraped corpus file: a JSON array of paragraph records.

    Records that fail validation are skipped and logged; duplicate numbers
    keep the first occurrence. Output is ordered by paragraph number.
    """

    def load_file(self, file_path: Path) -> List[Paragraph]:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Corpus file not found: {path}")

        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"Corpus file must contain a JSON array: {path}")

        paragraphs = {}
        skipped = 0
        for item in raw:
            try:
                record = _ParagraphRecord.model_validate(item)
            except ValidationError as error:
                skipped += 1
                logger.warning("Skipping invalid record: %s", error.errors()[0].get("msg"))
                continue

            text = self._clean_text(record.text)
            if text and record.id not in paragraphs:
                paragraphs[record.id] = Paragraph(id=record.id, text=text)

        logger.info(
            "Loaded %d paragraphs from %s (%d skipped)",
            len(paragraphs), path.name, skipped,
        )
        return [paragraphs[pid] for pid in sorted(paragraphs)]

    @staticmethod
    def _clean_text(text: str) -> str:
        """Normalize whitespace."""
        return re.sub(r"\s+", " ", text).strip()
