"""
Context Assembly

Formats retrieved chunks into one delimited block for the prompt builder.
"""

import logging
from typing import Optional, Sequence

from .similarity import ScoredChunk

logger = logging.getLogger(__name__)

CONTEXT_BEGIN = "BEGIN CONTEXT"
CONTEXT_END = "END CONTEXT"


def assemble_context(scored: Sequence[ScoredChunk], max_chars: Optional[int] = None) -> str:
    """
    Build the context block for a retrieval result.

    Chunks keep their ranked order. When max_chars is set, chunks are added
    until the next one would exceed the budget; the first chunk always goes in.

    Args:
        scored: Ranked chunks
        max_chars: Optional budget for chunk text

    Returns:
        Delimited context block, or "" when there is nothing to inject
    """
    if not scored:
        return ""

    parts = []
    total_chars = 0
    for item in scored:
        text = item.chunk.text
        if max_chars is not None and parts and total_chars + len(text) > max_chars:
            logger.info(f"Context limit reached ({max_chars} chars), using {len(parts)} chunks")
            break
        parts.append(f"[Source: {item.chunk.source_identity}]\n{text}")
        total_chars += len(text)

    body = "\n\n".join(parts)
    return f"{CONTEXT_BEGIN}\n{body}\n{CONTEXT_END}"
