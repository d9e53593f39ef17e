"""
RAG System Configuration

Centralized configuration for the in-process retrieval pipeline:
- Knowledge base location
- Embedding model settings
- Chunking parameters
- Retrieval parameters
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class RAGConfig(BaseSettings):
    """Configuration for RAG system."""

    enabled: bool = Field(
        default=True,
        description="Inject retrieved knowledge-base context into chat requests"
    )
    warm_up: bool = Field(
        default=False,
        description="Build the embedding index on application startup"
    )

    # Knowledge base
    knowledge_dir: str = Field(
        default="knowledge",
        description="Directory holding the knowledge-base documents"
    )
    knowledge_extensions: List[str] = Field(
        default=[".md", ".txt"],
        description="File extensions loaded from the knowledge directory"
    )

    # Embedding Model
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identity (also the cache invalidation key)"
    )
    embedding_api_key: Optional[str] = Field(
        default=None,
        description="API key for the embedding provider (falls back to OPENAI_API_KEY)"
    )
    embedding_base_url: Optional[str] = Field(
        default=None,
        description="Custom base URL for an OpenAI-compatible embedding endpoint"
    )
    embedding_timeout: int = Field(
        default=30,
        description="Embedding request timeout in seconds"
    )

    # Text Chunking
    chunk_size: int = Field(
        default=800,
        gt=0,
        description="Characters per fixed-size chunk window"
    )

    # Retrieval
    top_k: int = Field(
        default=3,
        ge=0,
        description="Number of similar chunks to retrieve"
    )
    max_context_chars: Optional[int] = Field(
        default=6000,
        description="Upper bound on retrieved text injected into the prompt"
    )

    class Config:
        env_prefix = "RAG_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


def get_rag_config() -> RAGConfig:
    """Get RAG configuration from environment."""
    return RAGConfig()
