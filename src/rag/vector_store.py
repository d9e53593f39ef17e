"""
In-Process Vector Store

Holds the embedded knowledge-base chunks for the active embedding model.

Features:
- Lazy build on first use (cold start)
- Cache hits return the same index with no document reads or embedding calls
- Full rebuild when the embedding model (or chunk size) changes
- All-or-nothing rebuilds: a failed rebuild leaves the previous index in place
- Single-flight: concurrent cache misses share one rebuild
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from .chunker import Chunk, Document, chunk_text
from .errors import EmbeddingShapeMismatch, InvalidDocument

logger = logging.getLogger(__name__)

DocumentLoader = Callable[[], Union[Sequence[Document], Awaitable[Sequence[Document]]]]


@dataclass(frozen=True)
class EmbeddingIndex:
    """Immutable set of chunks embedded with a single model."""
    model_identity: str
    chunks: tuple
    dimensionality: int
    chunk_size: Optional[int] = None
    built_at: float = field(default_factory=time.time, compare=False)
    vectors: np.ndarray = field(default=None, repr=False, compare=False)

    @classmethod
    def from_chunks(
        cls,
        model_identity: str,
        chunks: Sequence[Chunk],
        chunk_size: Optional[int] = None
    ) -> "EmbeddingIndex":
        """
        Build an index from chunks that already carry vectors.

        Args:
            model_identity: Model every vector was produced with
            chunks: Embedded chunks in index order
            chunk_size: Chunk size the chunks were produced with

        Returns:
            EmbeddingIndex
        """
        chunks = tuple(chunks)
        if not chunks:
            return cls(model_identity, chunks, 0, chunk_size, vectors=np.zeros((0, 0)))

        dimensionality = len(chunks[0].vector)
        for chunk in chunks:
            if len(chunk.vector) != dimensionality:
                raise EmbeddingShapeMismatch(
                    expected=dimensionality,
                    received=len(chunk.vector),
                    what="dimensions"
                )

        vectors = np.asarray([chunk.vector for chunk in chunks], dtype=np.float64)
        return cls(model_identity, chunks, dimensionality, chunk_size, vectors=vectors)

    @property
    def size(self) -> int:
        return len(self.chunks)

    def is_valid_for(self, model_identity: str, chunk_size: Optional[int] = None) -> bool:
        if self.model_identity != model_identity:
            return False
        return chunk_size is None or self.chunk_size is None or self.chunk_size == chunk_size


class VectorStore:
    """Process-local embedding cache keyed by embedding model identity."""

    def __init__(self, embedder: Any):
        """
        Initialize vector store.

        Args:
            embedder: Object with an async `embed(texts, model)` method
        """
        self.embedder = embedder
        self._index: Optional[EmbeddingIndex] = None
        self._lock = asyncio.Lock()
        self.builds = 0
        self.hits = 0

    @property
    def current(self) -> Optional[EmbeddingIndex]:
        """The cached index, or None before the first successful build."""
        return self._index

    async def ensure_index(
        self,
        model_identity: str,
        load_documents: DocumentLoader,
        chunk_size: int
    ) -> EmbeddingIndex:
        """
        Return a valid index for the model, rebuilding it if needed.

        Args:
            model_identity: Requested embedding model
            load_documents: Callable returning the knowledge-base documents
            chunk_size: Characters per chunk

        Returns:
            EmbeddingIndex whose model_identity equals the requested one
        """
        index = self._index
        if index is not None and index.is_valid_for(model_identity, chunk_size):
            self.hits += 1
            return index

        async with self._lock:
            # Another request may have finished the rebuild while we waited
            index = self._index
            if index is not None and index.is_valid_for(model_identity, chunk_size):
                self.hits += 1
                return index

            if index is None:
                logger.info(f"Building embedding index for {model_identity} (cold start)")
            else:
                logger.info(
                    f"Rebuilding embedding index: {index.model_identity} -> {model_identity}"
                )

            new_index = await self._build(model_identity, load_documents, chunk_size)
            self._index = new_index
            self.builds += 1
            return new_index

    async def rebuild(
        self,
        model_identity: str,
        load_documents: DocumentLoader,
        chunk_size: int
    ) -> EmbeddingIndex:
        """
        Force a rebuild even if the cached index is valid.

        The cached index is replaced only if the rebuild succeeds.
        """
        async with self._lock:
            logger.info(f"Forced rebuild of embedding index for {model_identity}")
            new_index = await self._build(model_identity, load_documents, chunk_size)
            self._index = new_index
            self.builds += 1
            return new_index

    async def _build(
        self,
        model_identity: str,
        load_documents: DocumentLoader,
        chunk_size: int
    ) -> EmbeddingIndex:
        start_time = time.time()

        documents = load_documents()
        if inspect.isawaitable(documents):
            documents = await documents

        documents = list(documents or [])
        chunks: List[Chunk] = []
        for document in documents:
            try:
                chunks.extend(chunk_text(document.text, document.identity, chunk_size))
            except InvalidDocument as e:
                logger.warning(f"Skipping document: {e}")

        if not chunks:
            logger.warning("Knowledge base is empty; retrieval will return no context")
            return EmbeddingIndex.from_chunks(model_identity, [], chunk_size)

        vectors = await self.embedder.embed([c.text for c in chunks], model_identity)
        if len(vectors) != len(chunks):
            raise EmbeddingShapeMismatch(expected=len(chunks), received=len(vectors))

        index = EmbeddingIndex.from_chunks(
            model_identity,
            [chunk.with_vector(vector) for chunk, vector in zip(chunks, vectors)],
            chunk_size
        )

        duration = (time.time() - start_time) * 1000
        logger.info(
            f"Embedding index built: {index.size} chunks from {len(documents)} documents, "
            f"{index.dimensionality} dims ({duration:.0f}ms)"
        )
        return index

    def invalidate(self) -> None:
        """Drop the cached index; the next ensure_index rebuilds it."""
        if self._index is not None:
            logger.info(f"Invalidating embedding index for {self._index.model_identity}")
        self._index = None

    def stats(self) -> Dict:
        """Get cache statistics"""
        index = self._index
        return {
            "model": index.model_identity if index else None,
            "chunks": index.size if index else 0,
            "dimensionality": index.dimensionality if index else 0,
            "builds": self.builds,
            "hits": self.hits,
        }
