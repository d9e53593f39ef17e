"""
Prompt assembly for the knowledge-base chat proxy.

Builds the message list sent to the chat model: system prompt (plus any
retrieved context), optional few-shot examples, prior turns, current query.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

CONTEXT_INSTRUCTIONS = (
    "Use the knowledge-base excerpts below when they are relevant to the "
    "question. If they do not contain the answer, say so and answer from "
    "general knowledge."
)

ALLOWED_HISTORY_ROLES = ("user", "assistant")


def build_system_prompt(system_prompt: str, context: str = "") -> str:
    """Append the retrieved context block to the system prompt."""
    if not context:
        return system_prompt
    return f"{system_prompt}\n\n{CONTEXT_INSTRUCTIONS}\n\n{context}"


def clean_history(
    history: Optional[Iterable[Any]],
    max_messages: Optional[int] = None
) -> List[Dict[str, str]]:
    """
    Keep only well-formed user/assistant turns from client-supplied history.

    Args:
        history: Raw message dicts (anything else is ignored)
        max_messages: Keep at most this many of the most recent turns

    Returns:
        List of {"role", "content"} dicts
    """
    cleaned = []
    for msg in history or []:
        if not isinstance(msg, dict):
            continue
        role = msg.get("role")
        content = msg.get("content")
        if role in ALLOWED_HISTORY_ROLES and isinstance(content, str) and content:
            cleaned.append({"role": role, "content": content})

    if max_messages is not None:
        cleaned = cleaned[-max_messages:] if max_messages > 0 else []
    return cleaned


def build_messages(
    system_prompt: str,
    query: str,
    context: str = "",
    history: Optional[Iterable[Any]] = None,
    examples: Optional[Iterable[Tuple[str, str]]] = None,
    max_history_messages: Optional[int] = None
) -> List[Dict[str, str]]:
    """
    Build chat messages for the model.

    Args:
        system_prompt: Base system prompt
        query: Current user question
        context: Assembled retrieval context ("" for none)
        history: Prior conversation turns
        examples: Few-shot (user, assistant) pairs
        max_history_messages: Bound on forwarded history

    Returns:
        List of message dicts
    """
    messages = [{"role": "system", "content": build_system_prompt(system_prompt, context)}]

    for user_text, assistant_text in examples or []:
        messages.append({"role": "user", "content": user_text})
        messages.append({"role": "assistant", "content": assistant_text})

    messages.extend(clean_history(history, max_history_messages))
    messages.append({"role": "user", "content": query})
    return messages
