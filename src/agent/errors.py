"""Errors raised by the chat collaborator."""

from typing import Optional


class ChatUnavailable(Exception):
    """The chat completion service failed or returned a non-success status."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)
