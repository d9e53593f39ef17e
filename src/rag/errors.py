"""
Retrieval error kinds.

The retrieval core raises these and never turns them into a fabricated
result; callers decide whether to degrade to a context-free answer.
"""

from typing import Optional


class RetrievalError(Exception):
    """Base class for failures inside the retrieval pipeline."""


class InvalidDocument(RetrievalError):
    """A knowledge-source entry is malformed (text is not a string)."""

    def __init__(self, identity: str, reason: str = "document text is not a string"):
        self.identity = identity
        self.reason = reason
        super().__init__(f"Invalid document '{identity}': {reason}")


class EmbeddingUnavailable(RetrievalError):
    """The embedding service failed or returned a non-success status."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


class EmbeddingShapeMismatch(RetrievalError):
    """The embedding provider broke its contract (count or dimensionality)."""

    def __init__(self, expected: int, received: int, what: str = "vectors"):
        self.expected = expected
        self.received = received
        super().__init__(f"Expected {expected} {what}, received {received}")
