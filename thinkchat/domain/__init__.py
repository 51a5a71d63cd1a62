"""Domain layer - pure business models and logic."""

from .chats.models import Chat
from .errors import (
    ChatError,
    ChatNotFoundError,
    ConfigurationError,
    ContextError,
    ContextNotFoundError,
    DomainError,
    MessageError,
    ResponderError,
    StorageError,
    ValidationError,
)
from .messages.models import Context, Message, MessageRole, MessageStatus
from .thinking.models import Assumption, Confidence, ReasoningStep, ThinkingRecord, Uncertainty

__all__ = [
    # Errors
    "DomainError",
    "ValidationError",
    "ChatError",
    "ChatNotFoundError",
    "MessageError",
    "ContextError",
    "ContextNotFoundError",
    "ConfigurationError",
    "StorageError",
    "ResponderError",
    # Messages
    "Message",
    "MessageRole",
    "MessageStatus",
    "Context",
    # Chats
    "Chat",
    # Thinking
    "Confidence",
    "Assumption",
    "Uncertainty",
    "ReasoningStep",
    "ThinkingRecord",
]
