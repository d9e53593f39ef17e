"""
FastAPI Dependencies

Provides dependency injection for settings, the retrieval service and the
chat service.
"""

from fastapi import Depends

from ..agent import ChatService, LLMClient, LLMSettings, get_llm_settings
from ..rag.config import get_rag_config
from ..rag.retriever import RetrievalService


def get_settings() -> LLMSettings:
    """
    LLM settings dependency.

    Read per request so key changes in the environment are picked up.
    """
    return get_llm_settings()


# Cached instance: the embedding index lives inside it and must be shared
# across requests of this process
_retrieval_service: RetrievalService | None = None


def get_retrieval_service() -> RetrievalService:
    """
    Get the process-wide retrieval service (reused across requests).

    The embedding index is shared; RAG settings are re-read on every call so
    a changed embedding model or chunk size rebuilds the index.

    Usage:
        @router.post("/chat")
        async def chat(retrieval: RetrievalService = Depends(get_retrieval_service)):
            result = await retrieval.retrieve(query)
    """
    global _retrieval_service
    if _retrieval_service is None:
        _retrieval_service = RetrievalService(config_provider=get_rag_config)
    return _retrieval_service


def reset_retrieval_service() -> None:
    """Forget the cached retrieval service (drops its embedding index)."""
    global _retrieval_service
    _retrieval_service = None


def get_chat_service(
    settings: LLMSettings = Depends(get_settings),
    retrieval_service: RetrievalService = Depends(get_retrieval_service)
) -> ChatService:
    """
    Chat service dependency.

    Creates a chat service per request around the shared retrieval service.
    """
    return ChatService(LLMClient(settings), retrieval_service, settings)
