"""Domain models for messages."""

from .models import Context, Message, MessageRole, MessageStatus

__all__ = [
    "Message",
    "MessageRole",
    "MessageStatus",
    "Context",
]
