"""Domain models for chats."""

from .models import Chat

__all__ = ["Chat"]
