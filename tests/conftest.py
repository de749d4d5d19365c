# tests/conftest.py

import json
from typing import List

import numpy as np
import pytest

from ccc_retrieval.domain.interfaces import EmbeddingPort
from ccc_retrieval.domain.models import Paragraph


TOPICS = ["prayer", "baptism", "marriage", "purgatory"]

SAMPLE_PARAGRAPHS = [
    Paragraph(id=1, text="God, infinitely perfect and blessed in himself, created man."),
    Paragraph(id=2, text="Prayer is the raising of one's mind and heart to God."),
    Paragraph(id=3, text="Holy Baptism is the basis of the whole Christian life."),
    Paragraph(id=4, text="The matrimonial covenant of marriage is ordered to the good of the spouses."),
    Paragraph(id=5, text="Purgatory is the final purification of the elect."),
    Paragraph(id=6, text="Vocal prayer and meditation are expressions of prayer."),
]


class TopicEmbeddingEngine(EmbeddingPort):
    """Deterministic embeddings: one axis per topic word plus a shared bias axis."""

    model_name = "topic-test-model"

    def __init__(self):
        self.calls: List[str] = []

    @property
    def dimension(self) -> int:
        return len(TOPICS) + 1

    def encode(self, texts: List[str]) -> np.ndarray:
        return np.stack([self._vector(text) for text in texts])

    def encode_single(self, text: str) -> np.ndarray:
        self.calls.append(text)
        return self._vector(text)

    def _vector(self, text: str) -> np.ndarray:
        lowered = text.lower()
        vector = np.array(
            [float(lowered.count(topic)) for topic in TOPICS] + [0.1],
            dtype=np.float32,
        )
        return vector / np.linalg.norm(vector)


@pytest.fixture
def topic_engine() -> TopicEmbeddingEngine:
    return TopicEmbeddingEngine()


@pytest.fixture
def corpus_file(tmp_path):
    """A small corpus JSON file in scraper format."""
    path = tmp_path / "ccc.json"
    path.write_text(
        json.dumps([{"id": p.id, "text": p.text} for p in SAMPLE_PARAGRAPHS]),
        encoding="utf-8",
    )
    return path
