"""
API Request/Response Models (Pydantic Schemas)

Defines data validation and serialization for FastAPI endpoints.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Chat Endpoint
class ChatRequest(BaseModel):
    """
    Request model for the chat endpoint.

    Two shapes are accepted:
    1. {"prompt": "text"} - simple chat
    2. {"systemPrompt": "...", "messages": [...]} - chat with history
    """

    prompt: Optional[str] = Field(None, description="Single user prompt")
    system_prompt: Optional[str] = Field(
        None,
        alias="systemPrompt",
        description="System prompt override"
    )
    messages: Optional[List[Any]] = Field(
        None,
        description="Conversation messages; the last user message is the query"
    )

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def resolve_prompt(self) -> Optional[str]:
        """The query to answer: `prompt`, else the last user message."""
        if self.prompt:
            return self.prompt
        if isinstance(self.messages, list):
            for msg in reversed(self.messages):
                if isinstance(msg, dict) and msg.get("role") == "user":
                    content = msg.get("content")
                    return content if isinstance(content, str) and content else "(empty)"
            return "(empty)"
        return None

    def history(self) -> List[Dict[str, Any]]:
        """Messages before the last user message (prior conversation)."""
        if self.prompt or not isinstance(self.messages, list):
            return []
        for i in range(len(self.messages) - 1, -1, -1):
            msg = self.messages[i]
            if isinstance(msg, dict) and msg.get("role") == "user":
                return self.messages[:i]
        return list(self.messages)


class ChatResponse(BaseModel):
    """Response model for the chat endpoint"""

    reply: str = Field(..., description="Assistant reply")
    sources: List[str] = Field(default_factory=list, description="Knowledge-base sources used")
    context_used: bool = Field(False, description="Whether retrieved context was injected")


class ChatStatusResponse(BaseModel):
    """GET /api/chat status payload"""

    ok: bool = True
    method: str = "GET"
    openai_key_present: bool
    hint: str


class ChatErrorResponse(BaseModel):
    """Error payload of the chat endpoint"""

    error: str = Field(..., description="Error summary")
    detail: Optional[str] = Field(None, description="Upstream or exception detail")


# Health Check
class HealthResponse(BaseModel):
    """Health check response"""

    status: str = Field(..., description="Service status", examples=["healthy"])
    llm: str = Field(..., description="LLM provider status", examples=["configured"])
    knowledge_base: Dict[str, Any] = Field(
        default_factory=dict,
        description="Embedding index status"
    )
    version: str = Field(..., description="API version", examples=["0.1.0"])
    timestamp: datetime = Field(default_factory=_utcnow, description="Current server time")


# Error Response
class ErrorResponse(BaseModel):
    """Standard error response"""

    detail: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code for client handling")
    timestamp: datetime = Field(default_factory=_utcnow)
