"""In-memory storage implementation."""

import copy
import logging
from typing import Dict, List

from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.chats.models import Chat
from thinkchat.domain.messages.models import Context, Message

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """
    In-memory storage for chats, messages, known tags and contexts.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the stored copy. Contents are lost on restart.
    """

    def __init__(self):
        self._chats: Dict[str, Chat] = {}
        self._messages: Dict[str, Message] = {}
        self._known_tags: List[str] = []
        self._contexts: Dict[str, Context] = {}
        logger.info("Initialized in-memory chat storage")

    async def save_message(self, message: Message) -> None:
        self._messages[message.id] = copy.deepcopy(message)

    async def save_chat(self, chat: Chat) -> None:
        self._chats[chat.id] = copy.deepcopy(chat)

    async def load_messages(self, chat_id: str) -> List[Message]:
        messages = [m for m in self._messages.values() if m.chat_id == chat_id]
        messages.sort(key=lambda m: m.timestamp)
        return copy.deepcopy(messages)

    async def load_chats(self) -> List[Chat]:
        chats = sorted(self._chats.values(), key=lambda c: c.last_activity, reverse=True)
        return copy.deepcopy(chats)

    async def delete_chat(self, chat_id: str) -> None:
        self._chats.pop(chat_id, None)
        for message_id in [mid for mid, m in self._messages.items() if m.chat_id == chat_id]:
            del self._messages[message_id]
        logger.debug("Deleted chat %s from memory", sanitize_for_logging(chat_id))

    async def clear_all_data(self) -> None:
        self._chats.clear()
        self._messages.clear()
        self._known_tags.clear()
        self._contexts.clear()

    async def save_known_tag(self, tag: str) -> None:
        if tag not in self._known_tags:
            self._known_tags.append(tag)

    async def load_known_tags(self) -> List[str]:
        return list(self._known_tags)

    async def save_context(self, context: Context) -> None:
        self._contexts[context.id] = copy.deepcopy(context)

    async def load_contexts(self) -> List[Context]:
        contexts = sorted(self._contexts.values(), key=lambda c: c.created_at, reverse=True)
        return copy.deepcopy(contexts)

    async def delete_context(self, context_id: str) -> None:
        self._contexts.pop(context_id, None)
