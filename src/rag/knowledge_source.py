"""
Knowledge Source

Read-only provider of knowledge-base documents. The default implementation
enumerates text files under a directory; a missing or unreadable directory is
an empty knowledge base, not an error.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from .chunker import Document
from .config import RAGConfig

logger = logging.getLogger(__name__)


class FileSystemKnowledgeSource:
    """Loads documents from files under a directory."""

    def __init__(self, directory: str, extensions: Optional[Iterable[str]] = None):
        """
        Initialize knowledge source.

        Args:
            directory: Root directory of the knowledge base
            extensions: File suffixes to load (e.g. ".md"); None loads every file
        """
        self.directory = Path(directory)
        self.extensions = (
            {ext.lower() for ext in extensions} if extensions is not None else None
        )

    def _matches(self, path: Path) -> bool:
        if not path.is_file():
            return False
        return self.extensions is None or path.suffix.lower() in self.extensions

    def load_documents(self) -> List[Document]:
        """
        Enumerate documents as (relative path, text) pairs, sorted by path.

        Returns:
            List of Document objects (empty if the directory is missing)
        """
        if not self.directory.is_dir():
            logger.warning(f"Knowledge directory not found: {self.directory}")
            return []

        try:
            paths = sorted(p for p in self.directory.rglob("*") if self._matches(p))
        except OSError as e:
            logger.warning(f"Failed to enumerate knowledge directory {self.directory}: {e}")
            return []

        documents = []
        for path in paths:
            identity = path.relative_to(self.directory).as_posix()
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable document {identity}: {e}")
                continue
            documents.append(Document(identity=identity, text=text))

        logger.info(f"Loaded {len(documents)} documents from {self.directory}")
        return documents

    __call__ = load_documents


def get_knowledge_source(config: Optional[RAGConfig] = None) -> FileSystemKnowledgeSource:
    """
    Get knowledge source instance.

    Args:
        config: RAG configuration (optional)

    Returns:
        FileSystemKnowledgeSource instance
    """
    if config is None:
        from .config import get_rag_config
        config = get_rag_config()

    return FileSystemKnowledgeSource(config.knowledge_dir, config.knowledge_extensions)
