"""
Embedding Service

Generates vector embeddings for text through LiteLLM, which speaks the
OpenAI-compatible embeddings API (`{model, input}` -> `{data: [{embedding}]}`)
for OpenAI, Azure, and other hosted providers.

Each call is a single batch request. Provider failures surface as
EmbeddingUnavailable; a response whose length does not match the input
surfaces as EmbeddingShapeMismatch.
"""

import logging
import os
from typing import Any, List, Optional

from litellm import aembedding

from .config import RAGConfig
from .errors import EmbeddingShapeMismatch, EmbeddingUnavailable

logger = logging.getLogger(__name__)


def _field(item: Any, name: str) -> Any:
    """Read a field from a response item that may be a dict or an object."""
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


class EmbeddingService:
    """Service for generating text embeddings."""

    def __init__(self, config: RAGConfig):
        """
        Initialize embedding service.

        Args:
            config: RAG configuration
        """
        self.config = config
        self.model_name = config.embedding_model
        self.api_key = config.embedding_api_key or os.getenv("OPENAI_API_KEY")
        self.base_url = config.embedding_base_url
        self.timeout = config.embedding_timeout

    async def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        """
        Generate embeddings for multiple texts in one request.

        Args:
            texts: Texts to embed
            model: Embedding model identity (defaults to the configured model)

        Returns:
            One vector per input text, in input order
        """
        if not texts:
            return []

        model = model or self.model_name
        params = {
            "model": model,
            "input": list(texts),
            "timeout": self.timeout,
        }
        if self.api_key:
            params["api_key"] = self.api_key
        if self.base_url:
            params["api_base"] = self.base_url

        logger.info(f"Embedding {len(texts)} texts with {model}")

        try:
            response = await aembedding(**params)
        except Exception as e:
            detail = getattr(e, "message", None) or str(e)
            status_code = getattr(e, "status_code", None)
            logger.error(f"Embedding request failed (status={status_code}): {detail}")
            raise EmbeddingUnavailable(
                f"Embedding request to {model} failed",
                detail=detail
            ) from e

        data = list(_field(response, "data") or [])
        if len(data) != len(texts):
            raise EmbeddingShapeMismatch(expected=len(texts), received=len(data))

        # Providers report each item's position; honour it when present
        if all(_field(item, "index") is not None for item in data):
            data.sort(key=lambda item: _field(item, "index"))

        embeddings = []
        for item in data:
            vector = _field(item, "embedding")
            if not vector:
                logger.error(f"Embedding response from {model} has an empty vector: {item!r}")
                raise EmbeddingShapeMismatch(expected=1, received=0, what="vector per item")
            embeddings.append([float(x) for x in vector])

        return embeddings

    async def embed_query(self, query: str, model: Optional[str] = None) -> List[float]:
        """
        Generate embedding for a search query.

        Args:
            query: Search query text
            model: Embedding model identity (defaults to the configured model)

        Returns:
            Query embedding vector
        """
        embeddings = await self.embed([query], model=model)
        return embeddings[0]


def get_embedding_service(config: Optional[RAGConfig] = None) -> EmbeddingService:
    """
    Get embedding service instance.

    Args:
        config: RAG configuration (optional, will load from env if not provided)

    Returns:
        EmbeddingService instance
    """
    if config is None:
        from .config import get_rag_config
        config = get_rag_config()

    return EmbeddingService(config)
