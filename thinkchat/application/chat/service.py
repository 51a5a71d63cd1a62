"""Chat service - core business logic for chat operations."""

import logging
from typing import Any, Iterable, List, Optional, Sequence, Set

from thinkchat.core.ids import IdGenerator, UuidIdGenerator
from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.chats.models import Chat
from thinkchat.domain.errors import ChatNotFoundError, ValidationError
from thinkchat.domain.messages.models import Context, Message
from thinkchat.interfaces.responder import ResponderProtocol
from thinkchat.interfaces.storage import StorageProtocol
from thinkchat.modules.config import ConfigManager

from .contexts import ContextIndex
from .orchestrator import ResponseOrchestrator, TurnResult
from .persistence import WriteBehind, outcome
from .store import ChatStore, StoreSnapshot, new_chat
from .tags import TagIndex

logger = logging.getLogger(__name__)


class ChatService:
    """
    Core chat service that owns the store, tag and context indexes and the
    orchestrator.
    Transport-agnostic, testable business logic.
    """

    def __init__(
        self,
        storage: Optional[StorageProtocol] = None,
        responder: Optional[ResponderProtocol] = None,
        config_manager: Optional[ConfigManager] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        """
        Initialize chat service with dependencies.

        Args:
            storage: Storage implementation (optional, defaults to in-memory)
            responder: Remote AI responder; None means every turn falls back
            config_manager: Configuration manager (optional)
            id_generator: Id source for chats and messages (optional, UUID4)
        """
        if storage is None:
            from thinkchat.infrastructure.storage.in_memory_storage import InMemoryStorage
            storage = InMemoryStorage()
        self.storage = storage
        self.responder = responder
        self.config_manager = config_manager
        self.id_generator = id_generator or UuidIdGenerator()

        default_tags: List[str] = []
        if self.config_manager is not None:
            default_tags = self.config_manager.app_settings.default_tag_list

        self.write_behind = WriteBehind(self.storage)
        self.store = ChatStore(write_behind=self.write_behind, known_tags=default_tags)
        self.tags = TagIndex(self.store)
        self.contexts = ContextIndex(self.store, self.id_generator, self.write_behind)
        # Chats whose stored history is already in the store
        self._history_loaded: Set[str] = set()
        self.orchestrator = ResponseOrchestrator(
            store=self.store,
            responder=self.responder,
            write_behind=self.write_behind,
            id_generator=self.id_generator,
        )

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------
    def create_new_chat(self, title: Optional[str] = None) -> Chat:
        """Create a chat at the top of the list and make it active."""
        chat = self.store.add_chat(new_chat(self.id_generator.new_id(), title))
        self._history_loaded.add(chat.id)
        return chat

    async def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat locally and in storage. Returns False if unknown."""
        removed = self.store.remove_chat(chat_id)
        self._history_loaded.discard(chat_id)
        if not removed:
            logger.warning("Delete requested for unknown chat %s", sanitize_for_logging(chat_id))
            return False
        await outcome(self.write_behind.delete_chat(chat_id))
        return True

    def update_chat(self, chat_id: str, **fields: Any) -> Chat:
        chat = self.store.update_chat(chat_id, **fields)
        if chat is None:
            raise ChatNotFoundError(f"Chat {chat_id} not found", code="CHAT_NOT_FOUND")
        return chat

    def set_active_chat(self, chat_id: Optional[str]) -> None:
        if chat_id is not None and not self.store.has_chat(chat_id):
            raise ChatNotFoundError(f"Chat {chat_id} not found", code="CHAT_NOT_FOUND")
        self.store.set_active_chat(chat_id)

    async def activate_chat(self, chat_id: str) -> List[Message]:
        """Make a chat active, loading its stored history the first time.

        Pending writes are flushed before the load so the stored timeline
        already holds everything this session appended.
        """
        self.set_active_chat(chat_id)
        if chat_id not in self._history_loaded:
            await self.write_behind.flush()
            await self.load_chat_history(chat_id)
            self._history_loaded.add(chat_id)
        return self.store.messages_for(chat_id)

    def list_chats(self, query: str = "", tags: Optional[Iterable[str]] = None) -> List[Chat]:
        """Chats matching ``query``; ``tags`` replaces the active tag filter when given."""
        if tags is not None:
            self.tags.set_filter(tags)
        return self.store.filter_chats(query)

    def get_messages(self, chat_id: str) -> List[Message]:
        return self.store.messages_for(chat_id)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load_chats_from_storage(self) -> List[Chat]:
        """Replace the chat index with the stored chats and known tags."""
        self.store.set_loading(True)
        try:
            chats = await self.storage.load_chats()
            self.store.set_chats(chats)
            self._history_loaded.clear()
            for tag in await self.storage.load_known_tags():
                self.store.register_known_tag(tag, persist=False)
            logger.info("Loaded %d chats from storage", len(chats))
            return chats
        except Exception as e:
            logger.error("Failed to load chats: %s", sanitize_for_logging(e), exc_info=True)
            return self.store.chats
        finally:
            self.store.set_loading(False)

    async def load_contexts_from_storage(self) -> List[Context]:
        """Replace the context library with the stored one."""
        try:
            contexts = await self.storage.load_contexts()
            self.contexts.set_contexts(contexts)
            logger.info("Loaded %d contexts from storage", len(contexts))
            return contexts
        except Exception as e:
            logger.error("Failed to load contexts: %s", sanitize_for_logging(e), exc_info=True)
            return self.contexts.contexts

    async def load_chat_history(self, chat_id: str) -> List[Message]:
        """Replace a chat's in-memory timeline with the stored one."""
        self.store.set_loading(True)
        try:
            messages = await self.storage.load_messages(chat_id)
            self.store.replace_all(chat_id, messages)
            return messages
        except Exception as e:
            logger.error(
                "Failed to load history for chat %s: %s",
                sanitize_for_logging(chat_id),
                sanitize_for_logging(e),
                exc_info=True,
            )
            return self.store.messages_for(chat_id)
        finally:
            self.store.set_loading(False)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------
    async def send_message(
        self,
        chat_id: str,
        content: str,
        contexts: Sequence[Context] = (),
    ) -> TurnResult:
        """Run one user turn and return its terminal state.

        The responder receives the chat's attached contexts followed by any
        ``contexts`` given for this turn only.
        """
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Message content must not be empty", code="EMPTY_MESSAGE")
        return await self.orchestrator.execute(chat_id, content, self.resolve_contexts(chat_id, contexts))

    def resolve_contexts(self, chat_id: str, extra: Sequence[Context] = ()) -> List[Context]:
        """Attached contexts of a chat plus ``extra``, without duplicate ids."""
        resolved = self.contexts.contexts_for_chat(chat_id)
        seen = {c.id for c in resolved}
        for context in extra:
            if context.id not in seen:
                seen.add(context.id)
                resolved.append(context)
        return resolved

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    def add_tag(self, chat_id: str, tag: str) -> List[str]:
        return self.tags.add_tag(chat_id, tag)

    def remove_tag(self, chat_id: str, tag: str) -> List[str]:
        return self.tags.remove_tag(chat_id, tag)

    def add_known_tag(self, tag: str) -> bool:
        return self.tags.add_known_tag(tag)

    def set_tag_filter(self, tags: Iterable[str]) -> List[str]:
        return self.tags.set_filter(tags)

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------
    def add_context(self, title: str, **fields: Any) -> Context:
        return self.contexts.add_context(title, **fields)

    def update_context(self, context_id: str, **fields: Any) -> Context:
        return self.contexts.update_context(context_id, **fields)

    def delete_context(self, context_id: str) -> bool:
        return self.contexts.delete_context(context_id)

    def search_contexts(self, query: str = "") -> List[Context]:
        return self.contexts.search(query)

    def attach_contexts(self, chat_id: str, context_ids: Iterable[str]) -> List[str]:
        return self.contexts.attach(chat_id, context_ids)

    def detach_context(self, chat_id: str, context_id: str) -> List[str]:
        return self.contexts.detach(chat_id, context_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def snapshot(self) -> StoreSnapshot:
        return self.store.snapshot()

    async def flush(self) -> None:
        """Wait for every scheduled storage write."""
        await self.write_behind.flush()

    async def clear_all_data(self) -> bool:
        """Wipe storage and the in-memory session."""
        await self.write_behind.flush()
        self.store.reset()
        self.contexts.reset()
        self._history_loaded.clear()
        return await outcome(self.write_behind.clear_all_data())

    async def reset(self) -> None:
        """Tear down session state (logout). Storage is left untouched."""
        await self.write_behind.flush()
        self.store.reset()
        self.contexts.reset()
        self._history_loaded.clear()
        logger.info("Chat service state reset")
