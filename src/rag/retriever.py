"""
Retrieval Service

Owns the embedding cache for one process and answers "which knowledge-base
chunks are relevant to this query?" for the chat handler.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .config import RAGConfig, get_rag_config
from .context import assemble_context
from .embedding_service import get_embedding_service
from .knowledge_source import get_knowledge_source
from .similarity import ScoredChunk, top_k
from .vector_store import DocumentLoader, EmbeddingIndex, VectorStore

logger = logging.getLogger(__name__)


@dataclass
class RetrievalResult:
    """Ranked chunks for a single query plus the assembled context block."""
    query: str
    chunks: List[ScoredChunk] = field(default_factory=list)
    context: str = ""

    @property
    def sources(self) -> List[str]:
        """Distinct source identities in rank order."""
        seen = []
        for item in self.chunks:
            if item.chunk.source_identity not in seen:
                seen.append(item.chunk.source_identity)
        return seen

    def __bool__(self) -> bool:
        return bool(self.chunks)


class RetrievalService:
    """
    Semantic retrieval over the local knowledge base.

    Errors from the embedding provider are raised (RetrievalError subclasses);
    the caller decides whether to continue without context.

    With a `config_provider` the configuration is re-read on every call, so a
    changed embedding model or chunk size reaches the cache key and triggers a
    rebuild. The knowledge source and embedding client are fixed at creation.
    """

    def __init__(
        self,
        config: Optional[RAGConfig] = None,
        embedding_service: Optional[Any] = None,
        load_documents: Optional[DocumentLoader] = None,
        vector_store: Optional[VectorStore] = None,
        config_provider: Optional[Callable[[], RAGConfig]] = None
    ):
        """
        Initialize retrieval service.

        Args:
            config: RAG configuration (optional, loads from env if not provided)
            embedding_service: Object with async embed/embed_query (optional)
            load_documents: Knowledge-source loader (optional)
            vector_store: Cache instance (optional)
            config_provider: Callable returning the current configuration (optional)
        """
        self.config_provider = config_provider
        self.config = config or (config_provider or get_rag_config)()
        self.embedding_service = embedding_service or get_embedding_service(self.config)
        self.load_documents = load_documents or get_knowledge_source(self.config)
        self.vector_store = vector_store or VectorStore(self.embedding_service)

        logger.info(
            f"Retrieval service initialized (model={self.config.embedding_model}, "
            f"chunk_size={self.config.chunk_size}, top_k={self.config.top_k})"
        )

    def current_config(self) -> RAGConfig:
        """The configuration requested right now."""
        if self.config_provider is not None:
            self.config = self.config_provider()
        return self.config

    async def _ensure_index(self, config: RAGConfig) -> EmbeddingIndex:
        return await self.vector_store.ensure_index(
            config.embedding_model,
            self.load_documents,
            config.chunk_size
        )

    async def ensure_index(self) -> EmbeddingIndex:
        return await self._ensure_index(self.current_config())

    async def rebuild(self) -> EmbeddingIndex:
        """Re-read and re-embed the knowledge base, e.g. after it changed on disk."""
        config = self.current_config()
        return await self.vector_store.rebuild(
            config.embedding_model,
            self.load_documents,
            config.chunk_size
        )

    async def warm_up(self) -> EmbeddingIndex:
        """Build the index ahead of the first request."""
        return await self.ensure_index()

    async def retrieve(self, query: str, top_k_results: Optional[int] = None) -> RetrievalResult:
        """
        Retrieve the chunks most similar to a query.

        Args:
            query: User query
            top_k_results: Number of chunks (defaults to config.top_k)

        Returns:
            RetrievalResult (empty when the knowledge base is empty)
        """
        config = self.current_config()
        k = config.top_k if top_k_results is None else top_k_results
        index = await self._ensure_index(config)

        if index.size == 0 or k <= 0:
            return RetrievalResult(query=query)

        query_vector = await self.embedding_service.embed_query(query, index.model_identity)
        scored = top_k(index, query_vector, k)
        context = assemble_context(scored, config.max_context_chars)

        logger.info(
            f"Retrieved {len(scored)} chunks for query: {query[:80]}"
            + (f" (best score {scored[0].score:.3f})" if scored else "")
        )
        return RetrievalResult(query=query, chunks=scored, context=context)

    def stats(self) -> Dict:
        config = self.current_config()
        stats = self.vector_store.stats()
        stats["enabled"] = config.enabled
        stats["requested_model"] = config.embedding_model
        stats["knowledge_dir"] = config.knowledge_dir
        return stats
