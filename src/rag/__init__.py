"""
RAG (Retrieval Augmented Generation) System

This module provides in-process semantic retrieval over a local knowledge base.

Components:
- chunker: Splits documents into fixed-size character windows
- knowledge_source: Loads documents from the knowledge directory
- embedding_service: Generates vector embeddings through LiteLLM
- vector_store: In-memory embedding cache keyed by model identity
- similarity: Cosine similarity ranking
- context: Formats ranked chunks into a prompt context block
- retriever: Retrieval service tying the pieces together
"""

from .config import RAGConfig
from .errors import (
    EmbeddingShapeMismatch,
    EmbeddingUnavailable,
    InvalidDocument,
    RetrievalError,
)
from .retriever import RetrievalResult, RetrievalService

__all__ = [
    "RAGConfig",
    "RetrievalError",
    "InvalidDocument",
    "EmbeddingUnavailable",
    "EmbeddingShapeMismatch",
    "RetrievalResult",
    "RetrievalService",
]
