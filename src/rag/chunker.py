"""
Text Chunking for RAG

Splits knowledge-base documents into fixed-size character windows that can be
embedded and retrieved independently.

Strategy:
- Contiguous, non-overlapping windows of exactly `size` characters
- The last window of a document may be shorter
- Whitespace-only windows are dropped
- Chunks keep the identity of the document they came from
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import InvalidDocument


@dataclass(frozen=True)
class Document:
    """A named knowledge-base document."""
    identity: str
    text: str


@dataclass(frozen=True)
class Chunk:
    """A fragment of a document, optionally carrying its embedding."""
    source_identity: str
    text: str
    vector: Optional[List[float]] = None

    def with_vector(self, vector: List[float]) -> "Chunk":
        return Chunk(self.source_identity, self.text, list(vector))


def chunk_text(text: str, identity: str, size: int) -> List[Chunk]:
    """
    Split a single document's text into fixed-size windows.

    Args:
        text: Document text
        identity: Document identity recorded on every chunk
        size: Window size in characters

    Returns:
        List of Chunk objects in window order
    """
    if not isinstance(text, str):
        raise InvalidDocument(identity)
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")

    chunks = []
    for start in range(0, len(text), size):
        window = text[start:start + size]
        if window.strip():
            chunks.append(Chunk(source_identity=identity, text=window))
    return chunks


def chunk_documents(documents: Iterable[Document], size: int) -> List[Chunk]:
    """
    Chunk multiple documents.

    Raises InvalidDocument for the first document whose text is not a string.
    The vector store chunks document by document instead so it can skip
    malformed entries and keep the rest.

    Args:
        documents: Documents in the order they should be chunked
        size: Window size in characters

    Returns:
        List of all chunks, document order then window order
    """
    all_chunks = []
    for document in documents:
        all_chunks.extend(chunk_text(document.text, document.identity, size))
    return all_chunks
