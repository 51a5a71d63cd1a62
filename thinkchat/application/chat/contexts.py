"""Context library: reusable knowledge contexts and their attachment to chats."""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from thinkchat.core.ids import IdGenerator
from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.errors import ChatNotFoundError, ContextNotFoundError, ValidationError
from thinkchat.domain.messages.models import Context

from .persistence import WriteBehind
from .store import ChatStore

logger = logging.getLogger(__name__)

_UPDATABLE_CONTEXT_FIELDS = {"title", "description", "content", "type", "tags", "category"}


class ContextIndex:
    """
    CRUD over the context library plus per-chat attachment.

    Attachment is recorded in ``Chat.context_ids`` so it is persisted with
    the chat summary; the library itself is persisted entry by entry.
    """

    def __init__(
        self,
        store: ChatStore,
        id_generator: IdGenerator,
        write_behind: Optional[WriteBehind] = None,
    ):
        self.store = store
        self.id_generator = id_generator
        self.write_behind = write_behind
        self._contexts: List[Context] = []

    @property
    def contexts(self) -> List[Context]:
        return list(self._contexts)

    def get_context(self, context_id: str) -> Optional[Context]:
        for context in self._contexts:
            if context.id == context_id:
                return context
        return None

    def set_contexts(self, contexts: Iterable[Context]) -> None:
        """Replace the library (load from storage)."""
        self._contexts = list(contexts)

    def reset(self) -> None:
        self._contexts = []

    # ------------------------------------------------------------------
    # Library CRUD
    # ------------------------------------------------------------------
    def add_context(
        self,
        title: str,
        description: str = "",
        content: str = "",
        type: str = "knowledge",
        tags: Iterable[str] = (),
        category: str = "",
    ) -> Context:
        """Create a context at the top of the library."""
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Context title must not be empty", code="INVALID_CONTEXT")
        context = Context(
            id=self.id_generator.new_id(),
            title=title,
            description=description,
            content=content,
            type=type,
            tags=list(tags),
            category=category,
        )
        self._contexts.insert(0, context)
        self._persist(context)
        logger.info("Created context %s", sanitize_for_logging(context.id))
        return context

    def update_context(self, context_id: str, **fields: Any) -> Context:
        """Replace library fields of a context and bump ``updated_at``."""
        unknown = set(fields) - _UPDATABLE_CONTEXT_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update context fields: {sorted(unknown)}", code="INVALID_FIELDS")
        context = self._require(context_id)
        for name, value in fields.items():
            setattr(context, name, list(value) if name == "tags" else value)
        context.updated_at = datetime.now(timezone.utc)
        self._persist(context)
        return context

    def delete_context(self, context_id: str) -> bool:
        """Remove a context from the library and from every chat it is attached to."""
        context = self.get_context(context_id)
        if context is None:
            return False
        self._contexts.remove(context)
        for chat in self.store.chats:
            if context_id in chat.context_ids:
                self.store.update_chat(chat.id, context_ids=chat.context_ids - {context_id})
        if self.write_behind is not None:
            self.write_behind.delete_context(context_id)
        logger.info("Deleted context %s", sanitize_for_logging(context_id))
        return True

    def search(self, query: str = "") -> List[Context]:
        """Contexts whose title, description, content or tags contain ``query``."""
        return [c for c in self._contexts if c.matches(query)]

    def get_by_ids(self, context_ids: Iterable[str]) -> List[Context]:
        """Known contexts among ``context_ids``, in library order. Unknown ids are skipped."""
        wanted = set(context_ids)
        return [c for c in self._contexts if c.id in wanted]

    # ------------------------------------------------------------------
    # Chat attachment
    # ------------------------------------------------------------------
    def attach(self, chat_id: str, context_ids: Iterable[str]) -> List[str]:
        """Attach contexts to a chat and count one use for each.

        Returns the chat's attached context ids, sorted.
        """
        chat = self._require_chat(chat_id)
        ids = list(dict.fromkeys(context_ids))
        contexts = [self._require(cid) for cid in ids]

        now = datetime.now(timezone.utc)
        for context in contexts:
            context.usage_count += 1
            context.last_used = now
            self._persist(context)
        self.store.update_chat(chat_id, context_ids=chat.context_ids | set(ids))
        logger.info("Attached %d contexts to chat %s", len(ids), sanitize_for_logging(chat_id))
        return sorted(chat.context_ids)

    def detach(self, chat_id: str, context_id: str) -> List[str]:
        """Detach one context from a chat. The library entry is kept."""
        chat = self._require_chat(chat_id)
        if context_id in chat.context_ids:
            self.store.update_chat(chat_id, context_ids=chat.context_ids - {context_id})
        return sorted(chat.context_ids)

    def contexts_for_chat(self, chat_id: str) -> List[Context]:
        """The library entries attached to a chat (empty for unknown chats)."""
        chat = self.store.get_chat(chat_id)
        if chat is None:
            return []
        return self.get_by_ids(chat.context_ids)

    def _require(self, context_id: str) -> Context:
        context = self.get_context(context_id)
        if context is None:
            raise ContextNotFoundError(f"Context {context_id} not found", code="CONTEXT_NOT_FOUND")
        return context

    def _require_chat(self, chat_id: str):
        chat = self.store.get_chat(chat_id)
        if chat is None:
            raise ChatNotFoundError(f"Chat {chat_id} not found", code="CHAT_NOT_FOUND")
        return chat

    def _persist(self, context: Context) -> None:
        if self.write_behind is not None:
            self.write_behind.save_context(context)
