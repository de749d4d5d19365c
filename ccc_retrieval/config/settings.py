# ccc_retrieval/config/settings.py
import os
import sys
from typing import List, Literal, Optional
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from ccc_retrieval.application.query_rewriter import DEFAULT_REWRITE_PROMPT


if os.getenv("APP_ENV", "dev") == "dev":
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default="dev", validation_alias="APP_ENV")
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        validation_alias="ALLOWED_ORIGINS",
    )

    # Corpus
    CORPUS_SIZE: int = Field(default=2865, ge=1, validation_alias="CORPUS_SIZE")
    MAX_RANGE: int = Field(default=10, ge=1, validation_alias="MAX_RANGE")
    CORPUS_FILE: str = Field(default="data/ccc.json", validation_alias="CORPUS_FILE")
    CHROMA_PERSIST_DIRECTORY: str = Field(
        default="./data/chroma_db", validation_alias="CHROMA_PERSIST_DIRECTORY"
    )

    # Search tuning
    RESULT_LIMIT: int = Field(default=10, ge=1, validation_alias="RESULT_LIMIT")
    KEYWORD_SUFFICIENCY_THRESHOLD: int = Field(
        default=5, ge=1, validation_alias="KEYWORD_SUFFICIENCY_THRESHOLD"
    )
    KEYWORD_BOOST: float = Field(default=0.5, validation_alias="KEYWORD_BOOST")
    SIMILARITY_THRESHOLD: float = Field(
        default=0.3, validation_alias="SIMILARITY_THRESHOLD"
    )
    SEARCH_TIME_BUDGET_SECONDS: float = Field(
        default=20.0, gt=0, validation_alias="SEARCH_TIME_BUDGET_SECONDS"
    )

    # Embedding Engine
    EMBEDDING_BACKEND: Literal["sentence-transformers", "openai"] = Field(
        default="sentence-transformers", validation_alias="EMBEDDING_BACKEND"
    )
    EMBEDDING_MODEL_NAME: str = Field(
        default="all-MiniLM-L6-v2", validation_alias="EMBEDDING_MODEL_NAME"
    )
    # Only consulted by the openai backend; local models report their own size.
    EMBEDDING_DIMENSION: int = Field(default=1536, validation_alias="EMBEDDING_DIMENSION")

    # Completion provider (query rewriting)
    OPENAI_API_KEY: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    OPENAI_BASE_URL: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL"
    )
    COMPLETION_MODEL: str = Field(default="gpt-4o-mini", validation_alias="COMPLETION_MODEL")
    REWRITE_ENABLED: bool = Field(default=True, validation_alias="REWRITE_ENABLED")
    PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=10.0, gt=0, validation_alias="PROVIDER_TIMEOUT_SECONDS"
    )

    # Logging knobs
    LOGGER_NAME: str = "ccc-retrieval"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    REWRITE_SYSTEM_PROMPT: str = DEFAULT_REWRITE_PROMPT


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
