"""Chat store: message timeline per chat plus the chat index.

The store is the single owner of message lists and chat summaries. Its
mutators are synchronous and run to completion, so under asyncio no other
coroutine can observe a half-applied mutation. Persistence is write-behind:
mutations are visible immediately and storage writes are scheduled after.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from thinkchat.core.log_sanitizer import preview, sanitize_for_logging
from thinkchat.domain.chats.models import Chat
from thinkchat.domain.errors import MessageError
from thinkchat.domain.messages.models import Message, MessageRole, MessageStatus

from .persistence import WriteBehind

logger = logging.getLogger(__name__)

_UPDATABLE_MESSAGE_FIELDS = {"content", "status", "thinking", "timestamp"}
_UPDATABLE_CHAT_FIELDS = {"title", "last_activity", "context_ids", "unread_count", "is_archived", "tags"}


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only view of the store for rendering layers."""
    chats: Tuple[Chat, ...] = ()
    messages: Mapping[str, Tuple[Message, ...]] = field(default_factory=lambda: MappingProxyType({}))
    active_chat_id: Optional[str] = None
    is_typing: bool = False
    is_loading: bool = False
    selected_tags: Tuple[str, ...] = ()
    known_tags: Tuple[str, ...] = ()
    selected_messages: Tuple[str, ...] = ()
    selection_mode: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chats": [chat.to_dict() for chat in self.chats],
            "messages": {
                chat_id: [m.to_dict() for m in messages]
                for chat_id, messages in self.messages.items()
            },
            "active_chat_id": self.active_chat_id,
            "is_typing": self.is_typing,
            "is_loading": self.is_loading,
            "selected_tags": list(self.selected_tags),
            "known_tags": list(self.known_tags),
            "selected_messages": list(self.selected_messages),
            "selection_mode": self.selection_mode,
        }


class ChatStore:
    """
    In-memory message store and chat index.

    ``append`` and ``update`` are the only per-message mutators; whole
    buckets change only through ``replace_all`` and ``remove_chat``.
    """

    def __init__(
        self,
        write_behind: Optional[WriteBehind] = None,
        known_tags: Optional[Iterable[str]] = None,
    ):
        self.write_behind = write_behind
        self._default_tags: List[str] = list(dict.fromkeys(known_tags or []))
        self._chats: List[Chat] = []
        self._messages: Dict[str, List[Message]] = {}
        self.active_chat_id: Optional[str] = None
        self.is_typing = False
        self.is_loading = False
        self._selected_tags: List[str] = []
        self._known_tags: List[str] = list(self._default_tags)
        self._selected_messages: List[str] = []
        self.selection_mode = False

    # ------------------------------------------------------------------
    # Message store
    # ------------------------------------------------------------------
    def append(self, message: Message) -> Message:
        """Add ``message`` at the tail of its chat.

        Non-system messages become the chat's last message and bump its
        last activity; the updated chat summary is then persisted.
        """
        self._messages.setdefault(message.chat_id, []).append(message)
        logger.debug(
            "Appended %s message %s to chat %s",
            message.role.value,
            sanitize_for_logging(message.id),
            sanitize_for_logging(message.chat_id),
        )

        if message.role is not MessageRole.SYSTEM:
            chat = self.get_chat(message.chat_id)
            if chat is not None:
                chat.last_message = message
                chat.touch()
                self._persist_chat(chat)
        return message

    def update(self, message_id: str, **fields: Any) -> Optional[Message]:
        """Replace fields of the message with ``message_id`` wherever it lives.

        Returns the updated message, or None (after logging an error) when no
        message matches. Status may only move from sending to delivered.
        """
        unknown = set(fields) - _UPDATABLE_MESSAGE_FIELDS
        if unknown:
            raise MessageError(f"Cannot update message fields: {sorted(unknown)}", code="INVALID_FIELDS")

        message = self._find_message(message_id)
        if message is None:
            logger.error("Message not found for update: %s", sanitize_for_logging(message_id))
            return None

        status = fields.get("status")
        if status is not None and not isinstance(status, MessageStatus):
            status = fields["status"] = MessageStatus(status)
        if message.is_delivered and status is MessageStatus.SENDING:
            raise MessageError(
                f"Message {message_id} is delivered and cannot return to sending",
                code="INVALID_STATUS_TRANSITION",
            )
        if message.is_delivered and "content" in fields:
            logger.warning("Overwriting content of delivered message %s", sanitize_for_logging(message_id))

        old_content = message.content
        for name, value in fields.items():
            setattr(message, name, value)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Message updated: id=%s fields=%s old=%r new=%r status=%s",
                sanitize_for_logging(message_id),
                sorted(fields),
                preview(old_content) or "EMPTY",
                preview(message.content) or "EMPTY",
                message.status.value,
            )
        return message

    def replace_all(self, chat_id: str, messages: Iterable[Message]) -> None:
        """Replace a chat's whole message list (history load)."""
        self._messages[chat_id] = list(messages)
        logger.info(
            "Loaded %d messages into chat %s",
            len(self._messages[chat_id]),
            sanitize_for_logging(chat_id),
        )

    def get_message(self, message_id: str, chat_id: Optional[str] = None) -> Optional[Message]:
        """Find a message by id, within one chat when ``chat_id`` is given."""
        if chat_id is not None:
            for message in self._messages.get(chat_id, []):
                if message.id == message_id:
                    return message
            return None
        return self._find_message(message_id)

    def messages_for(self, chat_id: str) -> List[Message]:
        """The chat's messages in timeline order (a new list)."""
        return list(self._messages.get(chat_id, []))

    def _find_message(self, message_id: str) -> Optional[Message]:
        for bucket in self._messages.values():
            for message in bucket:
                if message.id == message_id:
                    return message
        return None

    # ------------------------------------------------------------------
    # Chat index
    # ------------------------------------------------------------------
    @property
    def chats(self) -> List[Chat]:
        return list(self._chats)

    def has_chat(self, chat_id: str) -> bool:
        return self.get_chat(chat_id) is not None

    def get_chat(self, chat_id: str) -> Optional[Chat]:
        for chat in self._chats:
            if chat.id == chat_id:
                return chat
        return None

    def add_chat(self, chat: Chat) -> Chat:
        """Insert a new chat at the top of the index and make it active."""
        self._chats.insert(0, chat)
        self._messages.setdefault(chat.id, [])
        self.active_chat_id = chat.id
        self._persist_chat(chat)
        logger.info("Created chat %s", sanitize_for_logging(chat.id))
        return chat

    def update_chat(self, chat_id: str, **fields: Any) -> Optional[Chat]:
        """Replace summary fields of a chat and persist it."""
        unknown = set(fields) - _UPDATABLE_CHAT_FIELDS
        if unknown:
            raise ValueError(f"Cannot update chat fields: {sorted(unknown)}")

        chat = self.get_chat(chat_id)
        if chat is None:
            logger.warning("Chat not found for update: %s", sanitize_for_logging(chat_id))
            return None
        for name, value in fields.items():
            setattr(chat, name, value)
        self._persist_chat(chat)
        return chat

    def remove_chat(self, chat_id: str) -> bool:
        """Drop a chat and its message bucket. Returns False if unknown."""
        chat = self.get_chat(chat_id)
        had_messages = self._messages.pop(chat_id, None) is not None
        if chat is None and not had_messages:
            return False
        if chat is not None:
            self._chats.remove(chat)
        if self.active_chat_id == chat_id:
            self.active_chat_id = None
        self._selected_messages = [
            mid for mid in self._selected_messages if self._find_message(mid) is not None
        ]
        self.selection_mode = bool(self._selected_messages) and self.selection_mode
        logger.info("Removed chat %s", sanitize_for_logging(chat_id))
        return True

    def set_chats(self, chats: Iterable[Chat]) -> None:
        """Replace the chat index (load from storage)."""
        self._chats = list(chats)

    def set_active_chat(self, chat_id: Optional[str]) -> None:
        self.active_chat_id = chat_id

    def filter_chats(self, query: str = "") -> List[Chat]:
        """Chats carrying every selected tag and matching ``query``.

        The query matches title or last message content, case-insensitively.
        """
        needle = query.strip().lower()
        selected = set(self._selected_tags)
        result = []
        for chat in self._chats:
            if needle and needle not in chat.title.lower() and not (
                chat.last_message and needle in chat.last_message.content.lower()
            ):
                continue
            if selected and not selected.issubset(chat.tags):
                continue
            result.append(chat)
        return result

    def _persist_chat(self, chat: Chat) -> None:
        if self.write_behind is not None:
            self.write_behind.save_chat(chat)

    # ------------------------------------------------------------------
    # Tags (owned by TagIndex, stored here)
    # ------------------------------------------------------------------
    @property
    def selected_tags(self) -> List[str]:
        return list(self._selected_tags)

    def set_selected_tags(self, tags: Iterable[str]) -> None:
        self._selected_tags = list(dict.fromkeys(tags))

    @property
    def known_tags(self) -> List[str]:
        return list(self._known_tags)

    def register_known_tag(self, tag: str, persist: bool = True) -> bool:
        """Add ``tag`` to the known set. Returns True if it was new."""
        if tag in self._known_tags:
            return False
        self._known_tags.append(tag)
        if persist and self.write_behind is not None:
            self.write_behind.save_known_tag(tag)
        return True

    # ------------------------------------------------------------------
    # Flags and message selection
    # ------------------------------------------------------------------
    def set_typing(self, value: bool) -> None:
        self.is_typing = value

    def set_loading(self, value: bool) -> None:
        self.is_loading = value

    @property
    def selected_messages(self) -> List[str]:
        return list(self._selected_messages)

    def toggle_message_selection(self, message_id: str) -> bool:
        """Toggle one message; selection mode follows a non-empty selection."""
        if message_id in self._selected_messages:
            self._selected_messages.remove(message_id)
            self.selection_mode = bool(self._selected_messages)
            return False
        self._selected_messages.append(message_id)
        self.selection_mode = True
        return True

    def clear_message_selection(self) -> None:
        self._selected_messages = []
        self.selection_mode = False

    def set_selection_mode(self, enabled: bool) -> None:
        self.selection_mode = enabled
        if not enabled:
            self._selected_messages = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Forget all session state (logout / clear data)."""
        self._chats = []
        self._messages = {}
        self.active_chat_id = None
        self.is_typing = False
        self.is_loading = False
        self._selected_tags = []
        self._known_tags = list(self._default_tags)
        self._selected_messages = []
        self.selection_mode = False

    def snapshot(self) -> StoreSnapshot:
        """Deep-copied, read-only view of the current state."""
        return StoreSnapshot(
            chats=tuple(copy.deepcopy(self._chats)),
            messages=MappingProxyType({
                chat_id: tuple(copy.deepcopy(bucket))
                for chat_id, bucket in self._messages.items()
            }),
            active_chat_id=self.active_chat_id,
            is_typing=self.is_typing,
            is_loading=self.is_loading,
            selected_tags=tuple(self._selected_tags),
            known_tags=tuple(self._known_tags),
            selected_messages=tuple(self._selected_messages),
            selection_mode=self.selection_mode,
        )


def new_chat(chat_id: str, title: Optional[str] = None) -> Chat:
    """Build a fresh chat summary; untitled chats are named after the clock."""
    now = datetime.now(timezone.utc)
    return Chat(
        id=chat_id,
        title=title or f"Chat {int(now.timestamp() * 1000)}",
        last_activity=now,
    )
