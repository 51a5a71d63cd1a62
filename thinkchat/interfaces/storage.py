"""Storage collaborator interface."""

from typing import List, Protocol

from thinkchat.domain.chats.models import Chat
from thinkchat.domain.messages.models import Context, Message


class StorageProtocol(Protocol):
    """
    Port for chat and message persistence.

    Abstracts durable storage from the application layer. Writes are
    best-effort from the caller's point of view; only the two ``load_*``
    calls gate the caller's loading state.
    """

    async def save_message(self, message: Message) -> None:
        """
        Insert or replace a message record.

        Args:
            message: Message to persist (upsert by id)
        """
        ...

    async def save_chat(self, chat: Chat) -> None:
        """
        Insert or replace a chat summary, including its tag assignment.

        Args:
            chat: Chat to persist (upsert by id)
        """
        ...

    async def load_messages(self, chat_id: str) -> List[Message]:
        """
        Load a chat's messages ordered by timestamp, oldest first.

        Args:
            chat_id: Chat identifier

        Returns:
            Messages of the chat (empty if none)
        """
        ...

    async def load_chats(self) -> List[Chat]:
        """
        Load every chat summary, most recent activity first.

        Returns:
            Stored chats
        """
        ...

    async def delete_chat(self, chat_id: str) -> None:
        """
        Delete a chat and all of its messages.

        Args:
            chat_id: Chat identifier
        """
        ...

    async def clear_all_data(self) -> None:
        """Remove every chat, message, known tag and context."""
        ...

    async def save_known_tag(self, tag: str) -> None:
        """
        Register a tag in the known-tags set.

        Args:
            tag: Tag name (case-sensitive)
        """
        ...

    async def load_known_tags(self) -> List[str]:
        """
        Load the known-tags set in registration order.

        Returns:
            Known tag names
        """
        ...

    async def save_context(self, context: Context) -> None:
        """
        Insert or replace a context library entry.

        Args:
            context: Context to persist (upsert by id)
        """
        ...

    async def load_contexts(self) -> List[Context]:
        """
        Load the context library, newest first.

        Returns:
            Stored contexts
        """
        ...

    async def delete_context(self, context_id: str) -> None:
        """
        Delete a context library entry.

        Args:
            context_id: Context identifier
        """
        ...
