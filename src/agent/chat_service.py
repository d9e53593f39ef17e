"""
Chat Service

Coordinates retrieval and the chat model:
1. Retrieve knowledge-base context for the question
2. Fall back to no context if retrieval fails
3. Build the message list
4. Ask the chat model for a reply
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import time

from .llm_config import LLMClient, LLMSettings
from .prompts import build_messages
from ..rag.errors import RetrievalError
from ..rag.retriever import RetrievalResult, RetrievalService

logger = logging.getLogger(__name__)


@dataclass
class ChatAnswer:
    """Reply plus the retrieval metadata that produced it."""
    reply: str
    sources: List[str] = field(default_factory=list)
    context_used: bool = False
    retrieval_error: Optional[str] = None
    execution_time_ms: int = 0


class ChatService:
    """Answers questions with optional knowledge-base context."""

    def __init__(
        self,
        llm_client: LLMClient,
        retrieval_service: Optional[RetrievalService] = None,
        settings: Optional[LLMSettings] = None
    ):
        """
        Initialize chat service.

        Args:
            llm_client: Chat-completion client
            retrieval_service: Retrieval service (None disables retrieval)
            settings: LLM settings (defaults to the client's settings)
        """
        self.llm_client = llm_client
        self.retrieval_service = retrieval_service
        self.settings = settings or llm_client.settings

    async def _retrieve(self, query: str) -> Optional[RetrievalResult]:
        if self.retrieval_service is None or not self.retrieval_service.current_config().enabled:
            return None
        return await self.retrieval_service.retrieve(query)

    async def answer(
        self,
        query: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, Any]]] = None
    ) -> ChatAnswer:
        """
        Answer a question.

        Retrieval failures are logged and the question is answered without
        context; chat failures propagate as ChatUnavailable.

        Args:
            query: Current user question
            system_prompt: Caller-supplied system prompt (optional)
            history: Prior conversation turns (optional)

        Returns:
            ChatAnswer
        """
        start_time = time.time()

        retrieval = None
        retrieval_error = None
        try:
            retrieval = await self._retrieve(query)
        except RetrievalError as e:
            retrieval_error = str(e)
            logger.warning(f"Retrieval failed, continuing without context: {e}")

        context = retrieval.context if retrieval else ""
        messages = build_messages(
            system_prompt=system_prompt or self.settings.default_system_prompt,
            query=query,
            context=context,
            history=history,
            examples=self.settings.few_shot_examples,
            max_history_messages=self.settings.max_history_messages
        )

        reply = await self.llm_client.reply(messages)

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Chat answered: context={'yes' if context else 'no'}, "
            f"time={execution_time_ms}ms"
        )

        return ChatAnswer(
            reply=reply,
            sources=retrieval.sources if retrieval else [],
            context_used=bool(context),
            retrieval_error=retrieval_error,
            execution_time_ms=execution_time_ms
        )
