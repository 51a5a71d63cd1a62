"""Domain-level errors and exceptions."""

from typing import Optional


class DomainError(Exception):
    """Base domain error."""
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(DomainError):
    """Validation error."""
    pass


class ChatError(DomainError):
    """Chat-related error."""
    pass


class ChatNotFoundError(ChatError):
    """Raised when a chat cannot be found in the chat index."""
    pass


class MessageError(DomainError):
    """Message-related error."""
    pass


class ContextError(DomainError):
    """Context library error."""
    pass


class ContextNotFoundError(ContextError):
    """Raised when a context id is not in the context library."""
    pass


class ConfigurationError(DomainError):
    """Configuration error."""
    pass


class StorageError(DomainError):
    """Persistence collaborator failure."""
    pass


class ResponderError(DomainError):
    """AI responder failure (transport, status or payload)."""
    pass


class ResponderTimeoutError(ResponderError):
    """Raised when the responder request times out."""
    pass


class ResponderServiceError(ResponderError):
    """Raised when the responder returns a non-success status or an error field."""
    pass


class ResponderPayloadError(ResponderError):
    """Raised when the responder payload cannot be parsed at all."""
    pass
