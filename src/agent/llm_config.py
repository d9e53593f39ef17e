"""
LiteLLM Configuration Module

This module provides a unified interface to chat-completion providers using
LiteLLM, which exposes 100+ providers behind a consistent OpenAI-compatible API.

Environment variables:
- OPENAI_API_KEY: API key for the provider (LLM_API_KEY also accepted)
- LLM_MODEL / OPENAI_MODEL: Model identifier (default: gpt-4o-mini)
- LLM_PROVIDER: (Optional) Provider name for non-OpenAI routes (e.g. "azure")
- LLM_BASE_URL: (Optional) Custom base URL for self-hosted or proxy endpoints
- LLM_MAX_TOKENS: (Optional) Max tokens for responses (default: 800)
- LLM_TEMPERATURE: (Optional) Temperature for responses (default: 0.3)
- FEW_SHOT_EXAMPLES: (Optional) JSON list of [user, assistant] example pairs
"""

from typing import Dict, List, Optional, Any, Tuple
import logging

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
import litellm
from litellm import acompletion

from .errors import ChatUnavailable

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class LLMSettings(BaseSettings):
    """LLM configuration settings"""

    # Provider and model
    llm_provider: str = Field(default="openai", description="LLM provider name")
    llm_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("llm_model", "openai_model"),
        description="Model identifier"
    )

    # API credentials
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "llm_api_key"),
        description="API key for the chat provider"
    )

    # Optional configuration
    llm_base_url: Optional[str] = Field(default=None, description="Custom base URL")
    llm_max_tokens: int = Field(default=800, description="Max tokens for completion")
    llm_temperature: float = Field(default=0.3, description="Sampling temperature")
    llm_timeout: int = Field(default=60, description="Request timeout in seconds")

    # Prompt assembly
    default_system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System prompt used when the request does not send one"
    )
    max_history_messages: int = Field(
        default=10,
        description="Prior conversation messages forwarded to the model"
    )
    few_shot_examples: List[Tuple[str, str]] = Field(
        default_factory=list,
        description="(user, assistant) example pairs sent before the conversation, as JSON"
    )

    # LiteLLM specific settings
    litellm_log_level: str = Field(default="ERROR", description="LiteLLM log level")
    litellm_drop_params: bool = Field(
        default=True,
        description="Drop unsupported params for each provider"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"  # Ignore extra fields from .env

    @property
    def api_key_present(self) -> bool:
        return bool(self.openai_api_key)


def get_llm_settings() -> LLMSettings:
    """Get LLM settings from environment."""
    return LLMSettings()


class LLMClient:
    """
    Chat-completion client using LiteLLM.

    Returns the single best reply string; provider failures are raised as
    ChatUnavailable with the provider's error text in `detail`.
    """

    def __init__(self, settings: Optional[LLMSettings] = None):
        """
        Initialize LLM client.

        Args:
            settings: LLM settings (defaults to loading from environment)
        """
        self.settings = settings or LLMSettings()

        # Configure LiteLLM
        litellm.drop_params = self.settings.litellm_drop_params
        litellm.set_verbose = self.settings.litellm_log_level == "DEBUG"

        self.model = self._build_model_string()

    def _build_model_string(self) -> str:
        """
        Build LiteLLM model string.

        Format: "provider/model" or just "model" for OpenAI-compatible APIs

        Examples:
        - "gpt-4o-mini" (OpenAI default)
        - "azure/gpt-4o-mini"
        - "anthropic/claude-3-5-haiku-20241022"
        """
        provider = self.settings.llm_provider.lower()
        model = self.settings.llm_model

        if provider == "openai" or "/" in model:
            return model
        return f"{provider}/{model}"

    async def acomplete(self, messages: List[Dict[str, str]], **kwargs) -> Any:
        """
        Generate a completion using LiteLLM.

        Args:
            messages: List of message dicts with 'role' and 'content'
            **kwargs: Additional parameters to pass to litellm.acompletion()

        Returns:
            LiteLLM completion response
        """
        params = {
            "model": self.model,
            "messages": messages,
            "max_tokens": kwargs.get("max_tokens", self.settings.llm_max_tokens),
            "temperature": kwargs.get("temperature", self.settings.llm_temperature),
            "timeout": kwargs.get("timeout", self.settings.llm_timeout),
        }

        if self.settings.openai_api_key:
            params["api_key"] = self.settings.openai_api_key
        if self.settings.llm_base_url:
            params["api_base"] = self.settings.llm_base_url

        params.update({k: v for k, v in kwargs.items() if k not in params})

        try:
            return await acompletion(**params)
        except Exception as e:
            detail = getattr(e, "message", None) or str(e)
            logger.error(f"Chat completion failed ({self.model}): {detail}")
            raise ChatUnavailable(f"Chat request to {self.model} failed", detail=detail) from e

    async def reply(self, messages: List[Dict[str, str]], **kwargs) -> str:
        """
        Get the assistant reply text for a conversation.

        Args:
            messages: List of message dicts with 'role' and 'content'

        Returns:
            Reply text, or "(empty)" if the model returned nothing
        """
        response = await self.acomplete(messages, **kwargs)
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError):
            content = None
        return content or "(empty)"


# Singleton instance for easy import
_default_client: Optional[LLMClient] = None


def get_llm_client(settings: Optional[LLMSettings] = None) -> LLMClient:
    """
    Get or create the default LLM client.

    Args:
        settings: Optional settings (creates new client if provided)

    Returns:
        LLM client instance
    """
    global _default_client

    if settings is not None:
        return LLMClient(settings)

    if _default_client is None:
        _default_client = LLMClient()

    return _default_client
