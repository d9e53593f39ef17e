"""Pytest configuration and shared fixtures."""

import asyncio
from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional

import pytest

from src.agent import ChatUnavailable, LLMSettings
from src.rag.chunker import Document
from src.rag.config import RAGConfig
from src.rag.errors import EmbeddingUnavailable

# Each dimension counts one keyword, so similarity is easy to reason about
VOCABULARY = ["password", "invoice", "shipping", "refund"]


class FakeEmbedder:
    """In-memory stand-in for the embedding service."""

    def __init__(self, delay: float = 0.0):
        self.calls = []
        self.delay = delay
        self.fail = False
        self.drop_last = False

    @staticmethod
    def vectorize(text: str) -> List[float]:
        lower = text.lower()
        return [float(lower.count(word)) for word in VOCABULARY]

    async def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        self.calls.append((list(texts), model))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise EmbeddingUnavailable("embedding service down", detail='{"error": "overloaded"}')
        vectors = [self.vectorize(t) for t in texts]
        if self.drop_last:
            vectors = vectors[:-1]
        return vectors

    async def embed_query(self, query: str, model: Optional[str] = None) -> List[float]:
        return (await self.embed([query], model))[0]


class FakeLLMClient:
    """Records the messages it is asked to answer."""

    def __init__(self, settings: LLMSettings, reply_text: str = "Here is the answer."):
        self.settings = settings
        self.reply_text = reply_text
        self.error: Optional[Exception] = None
        self.requests = []

    async def reply(self, messages, **kwargs) -> str:
        self.requests.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply_text


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def documents():
    """Three small knowledge-base documents, one chunk each at size 200."""
    return [
        Document("account.md", "To reset your password open Settings and choose Reset password."),
        Document("billing.md", "Every invoice is emailed monthly. Refund requests take five days."),
        Document("shipping.md", "Shipping is free above fifty euros. Shipping takes three days."),
    ]


@pytest.fixture
def knowledge_dir(tmp_path, documents):
    """The sample documents written to disk."""
    for document in documents:
        (tmp_path / document.identity).write_text(document.text, encoding="utf-8")
    return tmp_path


@pytest.fixture
def rag_config(knowledge_dir):
    return RAGConfig(
        knowledge_dir=str(knowledge_dir),
        embedding_model="test-embedding",
        chunk_size=200,
        top_k=2,
        max_context_chars=None,
    )


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def slow_embedder():
    """Embedder that yields to the event loop before answering."""
    return FakeEmbedder(delay=0.05)


@pytest.fixture
def llm_settings():
    return LLMSettings(openai_api_key="sk-test", llm_model="gpt-4o-mini")


@pytest.fixture
def fake_llm(llm_settings):
    return FakeLLMClient(llm_settings)


@pytest.fixture
def fake_llm_factory():
    """Build a fake chat client around custom settings."""
    return FakeLLMClient


@pytest.fixture
def chat_unavailable():
    return ChatUnavailable("Chat request to gpt-4o-mini failed", detail='{"error": "quota exceeded"}')


@pytest.fixture
def embedding_response():
    """Build a LiteLLM-style embedding response."""
    def _build(vectors, shuffle=False):
        data = [{"object": "embedding", "index": i, "embedding": v} for i, v in enumerate(vectors)]
        if shuffle:
            data = list(reversed(data))
        return SimpleNamespace(data=data, usage=SimpleNamespace(total_tokens=10))
    return _build
