# ccc_retrieval/composition.py
#
# Composition root shared by api.py and main.py. Library modules never read
# settings themselves; everything is injected from here.

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ccc_retrieval.application.query_expander import SynonymExpander
from ccc_retrieval.application.query_rewriter import QueryRewriter
from ccc_retrieval.application.reference_resolver import ParagraphReferenceResolver
from ccc_retrieval.application.search_service import HybridSearchService
from ccc_retrieval.config.settings import Settings
from ccc_retrieval.domain.errors import ConfigurationError
from ccc_retrieval.domain.interfaces import EmbeddingPort, ParagraphStorePort
from ccc_retrieval.infrastructure.chroma_store import ChromaParagraphStore
from ccc_retrieval.infrastructure.completion_client import OpenAICompletionClient
from ccc_retrieval.infrastructure.embedding_engine import (
    OpenAIEmbeddingEngine,
    SentenceTransformerEngine,
)
from ccc_retrieval.infrastructure.paragraph_loader import ParagraphLoader

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    embedding_engine: EmbeddingPort
    store: ParagraphStorePort
    expander: SynonymExpander
    search_service: HybridSearchService
    resolver: ParagraphReferenceResolver

    @property
    def embedding_model_name(self) -> str:
        return getattr(self.embedding_engine, "model_name", "unknown")


def build_embedding_engine(settings: Settings) -> EmbeddingPort:
    if settings.EMBEDDING_BACKEND == "openai":
        if not settings.OPENAI_API_KEY:
            raise ConfigurationError("EMBEDDING_BACKEND=openai requires OPENAI_API_KEY.")
        return OpenAIEmbeddingEngine(
            api_key=settings.OPENAI_API_KEY,
            model_name=settings.EMBEDDING_MODEL_NAME,
            dimension=settings.EMBEDDING_DIMENSION,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        )
    return SentenceTransformerEngine(settings.EMBEDDING_MODEL_NAME)


def build_rewriter(settings: Settings) -> Optional[QueryRewriter]:
    if not settings.REWRITE_ENABLED:
        logger.info("Query rewriting disabled by configuration.")
        return None
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set — query rewriting disabled.")
        return None

    completion = OpenAICompletionClient(
        api_key=settings.OPENAI_API_KEY,
        model=settings.COMPLETION_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    )
    return QueryRewriter(completion, system_prompt=settings.REWRITE_SYSTEM_PROMPT)


def validate_dimensions(engine: EmbeddingPort, store: ParagraphStorePort) -> None:
    """
    Fail fast when a ready store holds vectors of a different size than the
    engine produces. A stale store under another model is reindexed instead.
    """
    if not store.is_ready():
        return
    stored = store.embedding_dimension
    if stored is not None and stored != engine.dimension:
        raise ConfigurationError(
            f"Embedding dimension mismatch: engine produces {engine.dimension}, "
            f"store holds {stored}. Reindex the corpus or fix EMBEDDING_DIMENSION."
        )


def assemble(
    settings: Settings,
    embedding_engine: EmbeddingPort,
    store: ParagraphStorePort,
    rewriter: Optional[QueryRewriter] = None,
) -> Container:
    """Wire the services from ready-made adapters."""
    validate_dimensions(embedding_engine, store)

    expander = SynonymExpander()
    search_service = HybridSearchService(
        store=store,
        embedding_engine=embedding_engine,
        expander=expander,
        rewriter=rewriter,
        result_limit=settings.RESULT_LIMIT,
        sufficiency_threshold=settings.KEYWORD_SUFFICIENCY_THRESHOLD,
        keyword_boost=settings.KEYWORD_BOOST,
        similarity_threshold=settings.SIMILARITY_THRESHOLD,
        time_budget_seconds=settings.SEARCH_TIME_BUDGET_SECONDS,
    )
    resolver = ParagraphReferenceResolver(
        store=store,
        corpus_size=settings.CORPUS_SIZE,
        max_range=settings.MAX_RANGE,
    )
    return Container(
        settings=settings,
        embedding_engine=embedding_engine,
        store=store,
        expander=expander,
        search_service=search_service,
        resolver=resolver,
    )


def build_container(settings: Settings) -> Container:
    embedding_engine = build_embedding_engine(settings)
    store = ChromaParagraphStore(
        persist_directory=settings.CHROMA_PERSIST_DIRECTORY,
        embedding_model_name=embedding_engine.model_name,
    )
    return assemble(settings, embedding_engine, store, build_rewriter(settings))


def ensure_index(container: Container) -> bool:
    """
    Index the corpus file when the store is empty or was built by another
    model. Returns True when indexing happened.
    """
    if container.store.is_ready():
        logger.info("Index is up to date — skipping corpus loading.")
        return False

    corpus_file = Path(container.settings.CORPUS_FILE)
    logger.info("No valid index found — indexing %s", corpus_file)
    paragraphs = ParagraphLoader().load_file(corpus_file)

    corpus_size = container.settings.CORPUS_SIZE
    beyond = [p.id for p in paragraphs if p.id > corpus_size]
    if beyond:
        logger.warning(
            "%d paragraphs exceed CORPUS_SIZE=%d and will not be addressable by reference.",
            len(beyond), corpus_size,
        )

    container.search_service.build_index(paragraphs)
    return True
