"""StorageProtocol adapter over the synchronous ChatRepository.

Repository calls block, so each one runs in a worker thread via
``asyncio.to_thread`` and the event loop stays free during database I/O.
"""

import asyncio
import logging
from typing import List, Optional

from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.chats.models import Chat
from thinkchat.domain.messages.models import Context, Message

from .chat_repository import ChatRepository
from .database import get_session_factory, init_database

logger = logging.getLogger(__name__)


class SqlStorage:
    """SQLAlchemy-backed storage (DuckDB by default)."""

    def __init__(self, repository: ChatRepository):
        self.repository = repository

    @classmethod
    def from_url(cls, db_url: Optional[str] = None) -> "SqlStorage":
        """Create tables if needed and build storage on the global engine."""
        init_database(db_url)
        return cls(ChatRepository(get_session_factory()))

    async def save_message(self, message: Message) -> None:
        await asyncio.to_thread(self.repository.save_message, message)

    async def save_chat(self, chat: Chat) -> None:
        await asyncio.to_thread(self.repository.save_chat, chat)

    async def load_messages(self, chat_id: str) -> List[Message]:
        return await asyncio.to_thread(self.repository.load_messages, chat_id)

    async def load_chats(self) -> List[Chat]:
        return await asyncio.to_thread(self.repository.load_chats)

    async def delete_chat(self, chat_id: str) -> None:
        deleted = await asyncio.to_thread(self.repository.delete_chat, chat_id)
        if not deleted:
            logger.debug("Nothing stored for chat %s", sanitize_for_logging(chat_id))

    async def clear_all_data(self) -> None:
        count = await asyncio.to_thread(self.repository.clear_all)
        logger.info("Cleared %d stored chats", count)

    async def save_known_tag(self, tag: str) -> None:
        await asyncio.to_thread(self.repository.save_known_tag, tag)

    async def load_known_tags(self) -> List[str]:
        return await asyncio.to_thread(self.repository.list_known_tags)

    async def save_context(self, context: Context) -> None:
        await asyncio.to_thread(self.repository.save_context, context)

    async def load_contexts(self) -> List[Context]:
        return await asyncio.to_thread(self.repository.load_contexts)

    async def delete_context(self, context_id: str) -> None:
        deleted = await asyncio.to_thread(self.repository.delete_context, context_id)
        if not deleted:
            logger.debug("Nothing stored for context %s", sanitize_for_logging(context_id))
