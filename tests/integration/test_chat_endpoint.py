"""
Integration tests for the chat proxy endpoint.

The chat model and the embedding service are replaced with in-memory fakes;
everything between the HTTP layer and them runs for real.
"""

import pytest
from fastapi.testclient import TestClient

from src.agent import ChatService, LLMSettings
from src.api import main
from src.api.dependencies import get_chat_service, get_retrieval_service, get_settings
from src.api.main import app
from src.rag.config import get_rag_config
from src.rag.retriever import RetrievalService


@pytest.fixture
def retrieval(rag_config, fake_embedder):
    return RetrievalService(config=rag_config, embedding_service=fake_embedder)


@pytest.fixture
def settings(llm_settings):
    return llm_settings


def make_client(settings, fake_llm, retrieval, monkeypatch):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_retrieval_service] = lambda: retrieval
    app.dependency_overrides[get_chat_service] = lambda: ChatService(fake_llm, retrieval, settings)
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "get_retrieval_service", lambda: retrieval)
    return TestClient(app)


@pytest.fixture
def client(settings, fake_llm, retrieval, monkeypatch):
    """Create test client with faked collaborators"""
    yield make_client(settings, fake_llm, retrieval, monkeypatch)
    app.dependency_overrides.clear()


@pytest.fixture
def env_client(settings, fake_llm, fake_embedder, knowledge_dir, monkeypatch):
    """Test client whose RAG settings are read from the environment per request"""
    monkeypatch.setenv("RAG_KNOWLEDGE_DIR", str(knowledge_dir))
    monkeypatch.setenv("RAG_CHUNK_SIZE", "200")
    monkeypatch.setenv("RAG_EMBEDDING_MODEL", "model-a")
    retrieval = RetrievalService(embedding_service=fake_embedder, config_provider=get_rag_config)
    yield make_client(settings, fake_llm, retrieval, monkeypatch)
    app.dependency_overrides.clear()


class TestChatStatus:
    """Test suite for GET/OPTIONS /api/chat"""

    def test_options(self, client):
        response = client.options("/api/chat")

        assert response.status_code == 200

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/chat",
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_get_with_key(self, client):
        response = client.get("/api/chat")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["method"] == "GET"
        assert data["openai_key_present"] is True
        assert "POST /api/chat" in data["hint"]

    def test_get_without_key(self, client, settings):
        settings.openai_api_key = None

        data = client.get("/api/chat").json()

        assert data["openai_key_present"] is False
        assert "OPENAI_API_KEY" in data["hint"]

    def test_method_not_allowed(self, client):
        response = client.put("/api/chat", json={"prompt": "hi"})

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    def test_head_not_allowed(self, client):
        assert client.head("/api/chat").status_code == 405

    @pytest.mark.parametrize("method", ["TRACE", "PURGE"])
    def test_other_methods_not_allowed(self, client, method):
        response = client.request(method, "/api/chat")

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    def test_unknown_path_keeps_default_error(self, client):
        response = client.get("/api/missing")

        assert response.status_code == 404
        assert "detail" in response.json()


class TestChatPost:
    """Test suite for POST /api/chat"""

    def test_prompt_request(self, client, fake_llm):
        response = client.post("/api/chat", json={"prompt": "How do I reset my password?"})

        assert response.status_code == 200
        data = response.json()
        assert data["reply"] == "Here is the answer."
        assert data["context_used"] is True
        assert data["sources"][0] == "account.md"
        assert "[Source: account.md]" in fake_llm.requests[0][0]["content"]

    def test_messages_request_uses_last_user_message(self, client, fake_llm):
        response = client.post("/api/chat", json={
            "systemPrompt": "You are a shipping expert.",
            "messages": [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello!"},
                {"role": "user", "content": "How long does shipping take?"},
                {"role": "assistant", "content": "(thinking)"},
            ],
        })

        assert response.status_code == 200
        messages = fake_llm.requests[0]
        assert messages[0]["content"].startswith("You are a shipping expert.")
        assert messages[-1] == {"role": "user", "content": "How long does shipping take?"}
        assert {"role": "user", "content": "Hi"} in messages
        assert response.json()["sources"][0] == "shipping.md"

    def test_messages_without_user_turn(self, client, fake_llm):
        response = client.post("/api/chat", json={
            "messages": [{"role": "assistant", "content": "Welcome!"}]
        })

        assert response.status_code == 200
        assert fake_llm.requests[0][-1] == {"role": "user", "content": "(empty)"}

    def test_missing_prompt(self, client):
        response = client.post("/api/chat", json={"mode": "simple"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing prompt or messages"}

    def test_invalid_json_body(self, client):
        response = client.post(
            "/api/chat",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing prompt or messages"

    def test_missing_api_key(self, client, settings):
        settings.openai_api_key = None

        response = client.post("/api/chat", json={"prompt": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Missing OPENAI_API_KEY"}

    def test_chat_upstream_failure(self, client, fake_llm, chat_unavailable):
        fake_llm.error = chat_unavailable

        response = client.post("/api/chat", json={"prompt": "hi"})

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "Chat request failed"
        assert data["detail"] == '{"error": "quota exceeded"}'

    def test_unexpected_failure(self, client, fake_llm):
        fake_llm.error = RuntimeError("boom")

        response = client.post("/api/chat", json={"prompt": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Server error", "detail": "boom"}

    def test_retrieval_outage_still_answers(self, client, fake_embedder, fake_llm):
        fake_embedder.fail = True

        response = client.post("/api/chat", json={"prompt": "How do I reset my password?"})

        assert response.status_code == 200
        data = response.json()
        assert data["context_used"] is False
        assert data["sources"] == []
        assert fake_llm.requests[0][0]["content"] == "You are a helpful assistant."

    def test_index_reused_across_requests(self, client, fake_embedder):
        client.post("/api/chat", json={"prompt": "password"})
        client.post("/api/chat", json={"prompt": "invoice"})

        index_batches = [texts for texts, _ in fake_embedder.calls if len(texts) == 3]
        assert len(index_batches) == 1


class TestServiceEndpoints:
    """Test suite for health and index management endpoints"""

    def test_root(self, client):
        data = client.get("/").json()

        assert data["chat"] == "/api/chat"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["llm"] == "configured"
        assert data["knowledge_base"]["enabled"] is True

    def test_index_stats_and_rebuild(self, client):
        client.post("/api/chat", json={"prompt": "password"})

        stats = client.get("/api/v1/index/stats").json()
        assert stats["model"] == "test-embedding"
        assert stats["chunks"] == 3
        assert stats["builds"] == 1

        response = client.post("/api/v1/index/rebuild")
        assert response.status_code == 200
        assert response.json()["chunks"] == 3
        assert client.get("/api/v1/index/stats").json()["builds"] == 2

    def test_index_rebuild_failure(self, client, fake_embedder):
        fake_embedder.fail = True

        response = client.post("/api/v1/index/rebuild")

        assert response.status_code == 503
        assert "overloaded" in response.json()["detail"]


class TestEmbeddingModelSwitch:
    """Test suite for index invalidation when RAG settings change at runtime"""

    def test_model_change_rebuilds_once(self, env_client, fake_embedder, monkeypatch):
        env_client.post("/api/chat", json={"prompt": "password"})
        assert env_client.get("/api/v1/index/stats").json()["model"] == "model-a"

        monkeypatch.setenv("RAG_EMBEDDING_MODEL", "model-b")
        env_client.post("/api/chat", json={"prompt": "invoice"})
        env_client.post("/api/chat", json={"prompt": "shipping"})

        stats = env_client.get("/api/v1/index/stats").json()
        assert stats["model"] == "model-b"
        assert stats["builds"] == 2

        index_models = [model for texts, model in fake_embedder.calls if len(texts) == 3]
        assert index_models == ["model-a", "model-b"]
        # queries are embedded with the model of the index they are scored against
        assert fake_embedder.calls[-1] == (["shipping"], "model-b")

    def test_rebuild_uses_current_model(self, env_client, fake_embedder, monkeypatch):
        env_client.post("/api/v1/index/rebuild")
        monkeypatch.setenv("RAG_EMBEDDING_MODEL", "model-b")

        response = env_client.post("/api/v1/index/rebuild")

        assert response.json()["model"] == "model-b"
        assert env_client.get("/api/v1/index/stats").json()["model"] == "model-b"
        assert [model for _, model in fake_embedder.calls] == ["model-a", "model-b"]

    def test_chunk_size_change_rebuilds(self, env_client, monkeypatch):
        env_client.post("/api/chat", json={"prompt": "password"})
        monkeypatch.setenv("RAG_CHUNK_SIZE", "20")

        env_client.post("/api/chat", json={"prompt": "password"})

        stats = env_client.get("/api/v1/index/stats").json()
        assert stats["builds"] == 2
        assert stats["chunks"] > 3
