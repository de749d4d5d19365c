# ccc_retrieval/infrastructure/embedding_engine.py

import logging
import numpy as np
import httpx
from typing import List, Optional
from sentence_transformers import SentenceTransformer

from ccc_retrieval.domain.errors import EmbeddingFailed
from ccc_retrieval.domain.interfaces import EmbeddingPort
from ccc_retrieval.util.timing import timed

logger = logging.getLogger(__name__)


DEFAULT_MODEL_NAME = "all-MiniLM-L6-v2"
OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
OPENAI_EMBEDDING_DIMENSION = 1536


class SentenceTransformerEngine(EmbeddingPort):
    """Local sentence-transformers model, CPU-friendly by default."""

    def __init__(self, model_name: str = DEFAULT_MODEL_NAME, device: Optional[str] = None):
        self._model_name = model_name
        with timed(logger, "embed.model.load", model=model_name):
            self._model = SentenceTransformer(model_name, device=device)
        self._dimension = int(self._model.get_sentence_embedding_dimension())

    @property
    def model_name(self) -> str:
        """Identifier stored as the index fingerprint."""
        return self._model_name

    @property
    def dimension(self) -> int:
        return self._dimension

    def encode(self, texts: List[str]) -> np.ndarray:
        try:
            return self._model.encode(
                texts,
                convert_to_numpy=True,
                show_progress_bar=len(texts) > 100,
                batch_size=32,
                normalize_embeddings=True,
            )
        except Exception as error:
            raise EmbeddingFailed(f"Local embedding failed: {error}") from error

    def encode_single(self, text: str) -> np.ndarray:
        try:
            return self._model.encode(
                text,
                convert_to_numpy=True,
                normalize_embeddings=True,
            )
        except Exception as error:
            raise EmbeddingFailed(f"Local embedding failed: {error}") from error


class OpenAIEmbeddingEngine(EmbeddingPort):
    """
    OpenAI-compatible /embeddings endpoint.

    The requested dimension is sent with every call and every returned vector
    is checked against it; a mismatch means the provider ignored the request.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = OPENAI_EMBEDDING_MODEL,
        dimension: int = OPENAI_EMBEDDING_DIMENSION,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self._model_name = model_name
        self._dimension = dimension
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        return self._dimension

    def encode(self, texts: List[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, self._dimension), dtype=np.float32)
        with timed(logger, "embed.remote", n=len(texts), model=self._model_name):
            vectors = self._post(texts)
        return np.stack([self._normalize(v) for v in vectors])

    def encode_single(self, text: str) -> np.ndarray:
        return self.encode([text])[0]

    def close(self) -> None:
        self._client.close()

    # ─── Private ─────────────────────────────────────────────────────────────

    def _post(self, texts: List[str]) -> List[List[float]]:
        payload = {
            "model": self._model_name,
            "input": texts,
            "encoding_format": "float",
            "dimensions": self._dimension,
        }
        try:
            response = self._client.post("/embeddings", json=payload)
            response.raise_for_status()
            data = response.json()["data"]
        except httpx.HTTPError as error:
            logger.error("embed.request_error err=%s", error)
            raise EmbeddingFailed(f"Embedding request failed: {error}") from error
        except (KeyError, TypeError, ValueError) as error:
            raise EmbeddingFailed(f"Malformed embedding response: {error}") from error

        ordered = sorted(data, key=lambda item: item.get("index", 0))
        if len(ordered) != len(texts):
            raise EmbeddingFailed(
                f"Expected {len(texts)} embeddings, provider returned {len(ordered)}."
            )
        return [item["embedding"] for item in ordered]

    def _normalize(self, vector: List[float]) -> np.ndarray:
        array = np.asarray(vector, dtype=np.float32)
        if array.shape != (self._dimension,):
            raise EmbeddingFailed(
                f"Expected a {self._dimension}-dimensional embedding, got {array.shape}."
            )
        norm = float(np.linalg.norm(array))
        return array / norm if norm > 0 else array
