"""
Agent module for the knowledge-base chat proxy.

This module provides the LLM client and the chat service that combines it
with knowledge-base retrieval.
"""

from .chat_service import ChatAnswer, ChatService
from .errors import ChatUnavailable
from .llm_config import LLMClient, LLMSettings, get_llm_client, get_llm_settings
from .prompts import build_messages

__all__ = [
    "ChatAnswer",
    "ChatService",
    "ChatUnavailable",
    "LLMClient",
    "LLMSettings",
    "get_llm_client",
    "get_llm_settings",
    "build_messages"
]
