# ccc_retrieval/infrastructure/chroma_store.py

import logging
import numpy as np
from typing import List, Optional
from pathlib import Path

import chromadb
from chromadb.config import Settings

from ccc_retrieval.domain.errors import StoreUnavailable
from ccc_retrieval.domain.interfaces import ParagraphStorePort
from ccc_retrieval.domain.models import Paragraph, SearchResult
from ccc_retrieval.infrastructure.keyword_index import KeywordIndex

logger = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

MODEL_FINGERPRINT_KEY  = "embedding_model_name"
DIMENSION_KEY          = "embedding_dimension"
COLLECTION_NAME        = "ccc_paragraphs"
METADATA_SENTINEL_ID   = "__metadata__"
PARAGRAPH_KIND         = {"kind": "paragraph"}

UPSERT_BATCH_SIZE = 500


class ChromaParagraphStore(ParagraphStorePort):
    """
    Persistent paragraph store:

    ┌─────────────────────────────────────────────────────┐
    │  ChromaDB (disk)  →  cosine similarity (HNSW)       │
    │  BM25 (memory)    →  keyword relevance              │
    │  metadata filter  →  paragraph range lookup         │
    └─────────────────────────────────────────────────────┘

    Persistence features:
        - Model fingerprinting: a sentinel record stores the embedding model
          name and dimension; a different model means a full reindex
        - BM25 is rebuilt from the persisted documents on startup, so keyword
          search works without re-encoding
        - Idempotent upserts keyed by paragraph number

    Every chromadb failure is reported as StoreUnavailable.
    """

    def __init__(self, persist_directory: str, embedding_model_name: str):
        """
        Args:
            persist_directory:    Path for ChromaDB on-disk storage.
            embedding_model_name: Current embedding model identifier.
                                  Used to detect stale stored embeddings.
        """
        self._persist_directory    = persist_directory
        self._embedding_model_name = embedding_model_name
        self._keyword_index        = KeywordIndex()

        path = Path(persist_directory)
        if path.exists() and not path.is_dir():
            raise StoreUnavailable(
                f"Failed to initialize ChromaDB: path '{persist_directory}' is a file."
            )
        path.mkdir(parents=True, exist_ok=True)

        try:
            self._client = chromadb.PersistentClient(
                path=persist_directory,
                settings=Settings(anonymized_telemetry=False),
            )
            self._collection = self._open_collection()
            paragraph_count = self.paragraph_count()
            if paragraph_count > 0:
                self._rebuild_keyword_index()
        except Exception as error:
            raise StoreUnavailable(
                f"Failed to initialize ChromaDB at '{persist_directory}'. "
                f"The database may be locked by another process or corrupted. "
                f"Original error: {error}"
            ) from error

        logger.info(
            "Connected to '%s'. Collection has %d paragraphs.",
            persist_directory, paragraph_count,
        )

    # ─── ParagraphStorePort: Read side ───────────────────────────────────────

    def search_keyword(self, query: str, limit: int) -> List[SearchResult]:
        return [
            SearchResult(paragraph_id=pid, text=text, score=score)
            for pid, text, score in self._keyword_index.search(query, limit)
        ]

    def search_vector(
        self,
        embedding: np.ndarray,
        threshold: float,
        limit: int,
    ) -> List[SearchResult]:
        """Cosine similarity = 1 - cosine distance; hits under threshold dropped."""
        try:
            count = self.paragraph_count()
            if count == 0 or limit <= 0:
                return []

            raw = self._collection.query(
                query_embeddings = [np.asarray(embedding, dtype=np.float32).tolist()],
                n_results        = min(limit, count),
                include          = ["documents", "metadatas", "distances"],
                where            = PARAGRAPH_KIND,
            )
        except Exception as error:
            raise StoreUnavailable(f"Vector search failed: {error}") from error

        results = []
        for text, metadata, distance in zip(
            raw["documents"][0],
            raw["metadatas"][0],
            raw["distances"][0],
        ):
            similarity = 1.0 - float(distance)
            if similarity < threshold:
                continue
            results.append(SearchResult(
                paragraph_id = int(metadata["paragraph_number"]),
                text         = text,
                score        = similarity,
            ))

        return sorted(results, key=lambda r: r.score, reverse=True)

    def fetch_range(self, start: int, end: int) -> List[Paragraph]:
        try:
            raw = self._collection.get(
                where   = {"$and": [
                    {"paragraph_number": {"$gte": start}},
                    {"paragraph_number": {"$lte": end}},
                ]},
                include = ["documents", "metadatas"],
            )
        except Exception as error:
            raise StoreUnavailable(f"Range fetch failed: {error}") from error

        paragraphs = [
            Paragraph(id=int(metadata["paragraph_number"]), text=text)
            for text, metadata in zip(raw["documents"], raw["metadatas"])
        ]
        return sorted(paragraphs, key=lambda p: p.id)

    # ─── ParagraphStorePort: Write side ──────────────────────────────────────

    def is_ready(self) -> bool:
        """
        True only when:
        1. Store has indexed paragraphs (excluding the sentinel record), AND
        2. Stored model fingerprint matches the current model.
        """
        if self.paragraph_count() == 0:
            return False

        stored_model = self._get_metadata_value(MODEL_FINGERPRINT_KEY)
        if stored_model != self._embedding_model_name:
            logger.warning(
                "Model mismatch detected: stored=%r current=%r. Full reindex required.",
                stored_model, self._embedding_model_name,
            )
            return False

        return True

    def paragraph_count(self) -> int:
        """
        Paragraph count excluding the metadata sentinel record.
        ChromaDB's .count() includes the sentinel.
        """
        total = self._collection.count()
        return max(0, total - 1) if self._sentinel_exists() else total

    @property
    def embedding_dimension(self) -> Optional[int]:
        if self.paragraph_count() == 0:
            return None
        stored = self._get_metadata_value(DIMENSION_KEY)
        return int(stored) if stored is not None else None

    def index_paragraphs(self, paragraphs: List[Paragraph], embeddings: np.ndarray) -> None:
        """
        Upsert paragraphs into ChromaDB and rebuild the in-memory BM25 index.

        Safe to call multiple times — upsert semantics prevent duplication.
        Clears stale data first if the embedding model has changed.
        """
        if not paragraphs:
            raise ValueError("Cannot index an empty paragraph list.")

        embeddings = np.asarray(embeddings, dtype=np.float32)
        if embeddings.ndim != 2 or embeddings.shape[0] != len(paragraphs):
            raise ValueError(
                f"Expected {len(paragraphs)} embeddings, got shape {embeddings.shape}."
            )
        dimension = int(embeddings.shape[1])

        try:
            if self.paragraph_count() > 0:
                stored_model = self._get_metadata_value(MODEL_FINGERPRINT_KEY)
                stored_dim = self._get_metadata_value(DIMENSION_KEY)
                if stored_model != self._embedding_model_name or (
                    stored_dim is not None and int(stored_dim) != dimension
                ):
                    logger.info("Clearing stale collection before reindex...")
                    self._client.delete_collection(COLLECTION_NAME)
                    self._collection = self._open_collection()

            logger.info("Upserting %d paragraphs...", len(paragraphs))

            ids       = [str(p.id) for p in paragraphs]
            vectors   = embeddings.tolist()
            documents = [p.text for p in paragraphs]
            metadatas = [{**PARAGRAPH_KIND, "paragraph_number": p.id} for p in paragraphs]

            for start in range(0, len(paragraphs), UPSERT_BATCH_SIZE):
                self._collection.upsert(
                    ids        = ids      [start : start + UPSERT_BATCH_SIZE],
                    embeddings = vectors  [start : start + UPSERT_BATCH_SIZE],
                    documents  = documents[start : start + UPSERT_BATCH_SIZE],
                    metadatas  = metadatas[start : start + UPSERT_BATCH_SIZE],
                )

            self._save_index_metadata(dimension)
            self._rebuild_keyword_index()
        except Exception as error:
            raise StoreUnavailable(f"Indexing failed: {error}") from error

        logger.info(
            "Upserted %d paragraphs. Total in store: %d",
            len(paragraphs), self.paragraph_count(),
        )

    # ─── Private: ChromaDB Helpers ────────────────────────────────────────────

    def _open_collection(self):
        return self._client.get_or_create_collection(
            name=COLLECTION_NAME,
            metadata={"hnsw:space": "cosine"},
        )

    def _rebuild_keyword_index(self) -> None:
        """
        Reconstruct the in-memory BM25 index from persisted documents.
        Ensures keyword search works immediately without re-indexing.
        """
        results = self._collection.get(
            include = ["documents", "metadatas"],
            where   = PARAGRAPH_KIND,
        )
        pairs = sorted(
            (int(metadata["paragraph_number"]), text)
            for text, metadata in zip(results["documents"], results["metadatas"])
        )
        self._keyword_index.build([pid for pid, _ in pairs], [text for _, text in pairs])
        logger.info("BM25 index built over %d paragraphs.", len(pairs))

    def _save_index_metadata(self, dimension: int) -> None:
        """Persist model fingerprint and dimension as a sentinel record."""
        # Unit vector: a zero vector has no defined cosine distance.
        placeholder = [1.0] + [0.0] * (dimension - 1)
        self._collection.upsert(
            ids        = [METADATA_SENTINEL_ID],
            embeddings = [placeholder],
            documents  = [METADATA_SENTINEL_ID],
            metadatas  = [{
                "kind":                "metadata",
                MODEL_FINGERPRINT_KEY: self._embedding_model_name,
                DIMENSION_KEY:         dimension,
            }],
        )

    def _sentinel_exists(self) -> bool:
        result = self._collection.get(ids=[METADATA_SENTINEL_ID])
        return len(result["ids"]) > 0

    def _get_metadata_value(self, key: str):
        """Retrieve a single value from the sentinel record's metadata."""
        result = self._collection.get(
            ids     = [METADATA_SENTINEL_ID],
            include = ["metadatas"],
        )
        if result["metadatas"]:
            return result["metadatas"][0].get(key)
        return None
