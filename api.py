import logging
from typing import List, Literal, Optional, Union

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ccc_retrieval.composition import Container, build_container
from ccc_retrieval.config.settings import settings
from ccc_retrieval.domain.errors import (
    NotAReference,
    ParagraphNotFound,
    SearchFailed,
    StoreUnavailable,
)
from ccc_retrieval.domain.models import Paragraph, ReferenceSpec, SearchOutcome
from ccc_retrieval.util.logger import init_logger

logger = logging.getLogger(__name__)


# ── API Models ───────────────────────────────────────────────────────────────
class SearchRequest(BaseModel):
    query: str = Field(min_length=1)


class SearchHit(BaseModel):
    id: int
    paragraphNumber: int
    content: str
    similarity: float


class SearchResponse(BaseModel):
    results: List[SearchHit]
    query: str
    searchType: Literal["keyword", "hybrid", "semantic"]


class ParagraphSchema(BaseModel):
    paragraphNumber: int
    content: str


class ParagraphRangeResponse(BaseModel):
    startParagraph: int
    endParagraph: int
    paragraphs: List[ParagraphSchema]


ParagraphLookupResponse = Union[ParagraphSchema, ParagraphRangeResponse]


class QueryResponse(BaseModel):
    type: Literal["paragraph", "search"]
    paragraph: Optional[ParagraphLookupResponse] = None
    search: Optional[SearchResponse] = None


class ExpansionResponse(BaseModel):
    originalQuery: str
    matchedTerms: List[str]
    expandedQuery: str
    hasExpansion: bool


class ConfigResponse(BaseModel):
    corpusSize: int
    maxRange: int
    resultLimit: int


# ── Dependencies & mapping ───────────────────────────────────────────────────
def get_container(request: Request) -> Container:
    return request.app.state.container


def _to_search_response(outcome: SearchOutcome) -> SearchResponse:
    return SearchResponse(
        results=[
            SearchHit(
                id=r.paragraph_id,
                paragraphNumber=r.paragraph_id,
                content=r.text,
                similarity=round(float(r.score), 4),
            )
            for r in outcome.results
        ],
        query=outcome.query,
        searchType=outcome.provenance.value,
    )


def _to_lookup_response(
    start: int, end: int, paragraphs: List[Paragraph]
) -> ParagraphLookupResponse:
    if start == end:
        return ParagraphSchema(paragraphNumber=paragraphs[0].id, content=paragraphs[0].text)
    return ParagraphRangeResponse(
        startParagraph=start,
        endParagraph=end,
        paragraphs=[ParagraphSchema(paragraphNumber=p.id, content=p.text) for p in paragraphs],
    )


def _run_search(container: Container, query: str) -> SearchResponse:
    try:
        outcome = container.search_service.search(query)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SearchFailed:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Search failed")
    return _to_search_response(outcome)


def _fetch(container: Container, spec: ReferenceSpec) -> ParagraphLookupResponse:
    try:
        paragraphs = container.resolver.fetch(spec)
    except ParagraphNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch paragraphs",
        )
    return _to_lookup_response(spec.start, spec.end, paragraphs)


# ── App Initialization ───────────────────────────────────────────────────────
def create_app(container: Container) -> FastAPI:
    app = FastAPI(
        title="CCC Retrieval API",
        description="Keyword + semantic search over the Catechism of the Catholic Church.",
        version="1.0.0",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    # ── Endpoints ────────────────────────────────────────────────────────────
    @app.get("/")
    def read_root(c: Container = Depends(get_container)):
        return {
            "message": "CCC Retrieval API is running.",
            "status": "ready" if c.store.is_ready() else "indexing_required",
            "paragraphs_indexed": c.store.paragraph_count(),
        }

    @app.get("/status")
    def get_status(c: Container = Depends(get_container)):
        """Readiness of the store and indexing statistics."""
        return {
            "is_ready": c.store.is_ready(),
            "paragraphs_indexed": c.store.paragraph_count(),
            "embedding_model": c.embedding_model_name,
            "embedding_dimension": c.embedding_engine.dimension,
        }

    @app.get("/api/config", response_model=ConfigResponse)
    def get_config(c: Container = Depends(get_container)):
        """Bounds clients use to pre-validate paragraph references."""
        return ConfigResponse(
            corpusSize=c.resolver.corpus_size,
            maxRange=c.resolver.max_range,
            resultLimit=c.settings.RESULT_LIMIT,
        )

    @app.post("/api/search", response_model=SearchResponse)
    def search(payload: SearchRequest, c: Container = Depends(get_container)):
        return _run_search(c, payload.query)

    @app.get("/api/ccc/{reference}", response_model=ParagraphLookupResponse)
    def get_paragraphs(reference: str, c: Container = Depends(get_container)):
        try:
            spec = c.resolver.parse(reference)
        except NotAReference as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return _fetch(c, spec)

    @app.post("/api/query", response_model=QueryResponse)
    def query(payload: SearchRequest, c: Container = Depends(get_container)):
        """Single input box: references are looked up, anything else is searched."""
        spec = c.resolver.resolve(payload.query)
        if spec is not None:
            return QueryResponse(type="paragraph", paragraph=_fetch(c, spec))
        return QueryResponse(type="search", search=_run_search(c, payload.query))

    @app.get("/api/expansion", response_model=ExpansionResponse)
    def preview_expansion(q: str = Query(..., min_length=1), c: Container = Depends(get_container)):
        preview = c.expander.preview(q)
        return ExpansionResponse(
            originalQuery=preview.original_query,
            matchedTerms=preview.matched_terms,
            expandedQuery=preview.expanded_query,
            hasExpansion=preview.has_expansion,
        )

    return app


def app_factory() -> FastAPI:
    init_logger()
    container = build_container(settings)
    if not container.store.is_ready():
        logger.warning(
            "Paragraph store is not ready. Run main.py to index the corpus first."
        )
    return create_app(container)


if __name__ == "__main__":
    uvicorn.run("api:app_factory", factory=True, host="0.0.0.0", port=8000)
