"""
Index Router

Inspect and rebuild the in-process knowledge-base embedding index.
"""

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from ..dependencies import get_retrieval_service
from ...rag.errors import RetrievalError
from ...rag.retriever import RetrievalService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/index/stats")
async def get_index_stats(retrieval: RetrievalService = Depends(get_retrieval_service)):
    """
    Get embedding index statistics.

    Returns the cached model, chunk count, dimensionality, builds and cache hits.
    """
    return retrieval.stats()


@router.post("/index/rebuild")
async def rebuild_index(retrieval: RetrievalService = Depends(get_retrieval_service)):
    """
    Re-read the knowledge base and re-embed it.

    If the rebuild fails the previous index keeps serving requests.
    """
    try:
        index = await retrieval.rebuild()
    except RetrievalError as e:
        logger.error(f"Index rebuild failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Index rebuild failed: {getattr(e, 'detail', None) or e}"
        )

    return {
        "status": "success",
        "model": index.model_identity,
        "chunks": index.size,
        "dimensionality": index.dimensionality
    }
