"""Tag index: known tags and per-chat tag assignment."""

import logging
from typing import Iterable, List

from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.errors import ChatNotFoundError, ValidationError

from .store import ChatStore

logger = logging.getLogger(__name__)


def _validate_tag(tag: str) -> str:
    if not isinstance(tag, str) or not tag.strip():
        raise ValidationError("Tag must be a non-empty string", code="INVALID_TAG")
    return tag


class TagIndex:
    """CRUD over chat tag sets. Tags are case-sensitive strings."""

    def __init__(self, store: ChatStore):
        self.store = store

    @property
    def known_tags(self) -> List[str]:
        return self.store.known_tags

    def add_tag(self, chat_id: str, tag: str) -> List[str]:
        """Assign ``tag`` to a chat (idempotent) and register it as known.

        Returns the chat's tags, sorted.
        """
        _validate_tag(tag)
        chat = self.store.get_chat(chat_id)
        if chat is None:
            raise ChatNotFoundError(f"Chat {chat_id} not found", code="CHAT_NOT_FOUND")

        if tag not in chat.tags:
            self.store.update_chat(chat_id, tags=chat.tags | {tag})
            logger.info("Tagged chat %s with %s", sanitize_for_logging(chat_id), sanitize_for_logging(tag))
        self.store.register_known_tag(tag)
        return sorted(chat.tags)

    def remove_tag(self, chat_id: str, tag: str) -> List[str]:
        """Unassign ``tag`` from a chat. The known-tag set is left alone."""
        chat = self.store.get_chat(chat_id)
        if chat is None:
            raise ChatNotFoundError(f"Chat {chat_id} not found", code="CHAT_NOT_FOUND")

        if tag in chat.tags:
            self.store.update_chat(chat_id, tags=chat.tags - {tag})
            logger.info("Removed tag %s from chat %s", sanitize_for_logging(tag), sanitize_for_logging(chat_id))
        return sorted(chat.tags)

    def add_known_tag(self, tag: str) -> bool:
        """Register a tag without assigning it. Returns True if it was new."""
        return self.store.register_known_tag(_validate_tag(tag))

    def set_filter(self, tags: Iterable[str]) -> List[str]:
        """Select the tags the chat list is filtered by (all must match)."""
        self.store.set_selected_tags(tags)
        return self.store.selected_tags
