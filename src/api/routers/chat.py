"""
Chat Router

Chat proxy endpoint: answers a prompt with the configured LLM, injecting
knowledge-base context retrieved from the local embedding index.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..dependencies import get_chat_service, get_settings
from ..schemas import ChatErrorResponse, ChatRequest, ChatResponse, ChatStatusResponse
from ...agent import ChatService, ChatUnavailable, LLMSettings

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ChatErrorResponse(error=error, detail=detail).model_dump(exclude_none=True)
    )


async def _read_body(request: Request) -> dict:
    """Parse the raw body as a JSON object; anything else is an empty body."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Chat request body is not valid JSON, treating as empty")
        return {}
    return body if isinstance(body, dict) else {}


@router.options("/chat", include_in_schema=False)
async def chat_options():
    """CORS preflight without Origin headers."""
    return Response(status_code=status.HTTP_200_OK)


@router.get("/chat", response_model=ChatStatusResponse)
async def chat_status(settings: LLMSettings = Depends(get_settings)):
    """
    Report whether the endpoint is ready to proxy chat requests.
    """
    has_key = settings.api_key_present
    hint = (
        "POST /api/chat with {prompt} or {systemPrompt, messages}"
        if has_key
        else "Set OPENAI_API_KEY in the environment and restart the service."
    )
    return ChatStatusResponse(openai_key_present=has_key, hint=hint)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: Request,
    settings: LLMSettings = Depends(get_settings),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Answer a chat request.

    **Request bodies:**
    - `{"prompt": "text"}`
    - `{"systemPrompt": "...", "messages": [{"role": "user", "content": "..."}]}`

    **Returns:**
    - `reply`: assistant answer
    - `sources`: knowledge-base documents whose chunks were injected
    - `context_used`: whether any context was injected
    """
    body = await _read_body(request)

    if not settings.api_key_present:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Missing OPENAI_API_KEY")

    try:
        chat_request = ChatRequest.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Invalid chat request: {e.errors()[0]['msg']}")
        return _error(status.HTTP_400_BAD_REQUEST, "Missing prompt or messages")

    prompt = chat_request.resolve_prompt()
    if not prompt:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing prompt or messages")

    logger.info(f"Chat request: {prompt[:100]}")

    try:
        answer = await chat_service.answer(
            query=prompt,
            system_prompt=chat_request.system_prompt,
            history=chat_request.history()
        )
    except ChatUnavailable as e:
        return _error(status.HTTP_502_BAD_GATEWAY, "Chat request failed", e.detail or str(e))
    except Exception as e:
        logger.error(f"Chat error: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error", str(e))

    return ChatResponse(
        reply=answer.reply,
        sources=answer.sources,
        context_used=answer.context_used
    )


# Every other method answers with the same JSON error shape
NOT_ALLOWED_METHODS = ["HEAD", "PUT", "PATCH", "DELETE", "TRACE", "CONNECT"]


@router.api_route("/chat", methods=NOT_ALLOWED_METHODS, include_in_schema=False)
async def chat_method_not_allowed():
    return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")
