"""
Similarity Ranking

Brute-force cosine similarity over every cached chunk. Cost is O(n*d), which
is fine for knowledge bases of a few hundred chunks.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .chunker import Chunk
from .errors import EmbeddingShapeMismatch
from .vector_store import EmbeddingIndex

EPSILON = 1e-12


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk with its similarity to the query."""
    chunk: Chunk
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    Zero vectors score 0.0 instead of dividing by zero.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity in [-1, 1] (up to floating point error)
    """
    vec1 = np.asarray(a, dtype=np.float64)
    vec2 = np.asarray(b, dtype=np.float64)
    if vec1.shape != vec2.shape:
        raise EmbeddingShapeMismatch(expected=vec1.size, received=vec2.size, what="dimensions")

    denominator = np.linalg.norm(vec1) * np.linalg.norm(vec2) + EPSILON
    return float(np.dot(vec1, vec2) / denominator)


def top_k(index: EmbeddingIndex, query_vector: Sequence[float], k: int) -> List[ScoredChunk]:
    """
    Score every chunk against the query and return the best k.

    Ties keep their original index order.

    Args:
        index: Embedding index to search
        query_vector: Query embedding
        k: Maximum number of results

    Returns:
        ScoredChunk list, descending by score
    """
    if k <= 0 or index.size == 0:
        return []

    query = np.asarray(query_vector, dtype=np.float64)
    if query.shape != (index.dimensionality,):
        raise EmbeddingShapeMismatch(
            expected=index.dimensionality,
            received=query.size,
            what="dimensions"
        )

    matrix = index.vectors
    if matrix is None:
        matrix = np.asarray([chunk.vector for chunk in index.chunks], dtype=np.float64)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query) + EPSILON
    scores = matrix @ query / norms

    # Stable sort on negated scores keeps ties in index order
    order = np.argsort(-scores, kind="stable")[:k]
    return [ScoredChunk(chunk=index.chunks[i], score=float(scores[i])) for i in order]
