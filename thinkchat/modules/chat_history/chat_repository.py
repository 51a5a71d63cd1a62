"""Repository for chat persistence operations.

Handles chat, message, tag and context CRUD. Referential integrity is enforced here
rather than via database FK constraints for DuckDB compatibility.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import delete, desc, func
from sqlalchemy.orm import Session, sessionmaker

from thinkchat.domain.chats.models import Chat
from thinkchat.domain.messages.models import Context, Message, MessageRole, MessageStatus
from thinkchat.domain.thinking.models import ThinkingRecord

from .models import ChatRecord, ChatTagLink, ContextRecord, MessageRecord, TagRecord

logger = logging.getLogger(__name__)


class ChatRepository:
    """Handles all chat, message, tag and context persistence."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self) -> Session:
        return self._session_factory()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def save_message(self, message: Message) -> None:
        """Insert or replace a message by id."""
        with self._get_session() as session:
            record = session.get(MessageRecord, message.id)
            if record is None:
                record = MessageRecord(id=message.id)
                session.add(record)
            record.chat_id = message.chat_id
            record.role = message.role.value
            record.content = message.content
            record.status = message.status.value
            record.timestamp = _to_naive_utc(message.timestamp)
            record.thinking_json = json.dumps(message.thinking.to_dict()) if message.thinking else None
            session.commit()

    def load_messages(self, chat_id: str) -> List[Message]:
        """A chat's messages, oldest first."""
        with self._get_session() as session:
            records = session.query(MessageRecord).filter(
                MessageRecord.chat_id == chat_id,
            ).order_by(MessageRecord.timestamp).all()
            return [_message_from_record(r) for r in records]

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------
    def save_chat(self, chat: Chat) -> None:
        """Insert or replace a chat summary and its tag assignment."""
        with self._get_session() as session:
            record = session.get(ChatRecord, chat.id)
            if record is None:
                record = ChatRecord(id=chat.id)
                session.add(record)
            record.title = chat.title
            record.last_activity = _to_naive_utc(chat.last_activity)
            record.last_message_id = chat.last_message.id if chat.last_message else None
            record.context_ids_json = json.dumps(sorted(chat.context_ids))
            record.unread_count = chat.unread_count
            record.is_archived = chat.is_archived

            wanted = {self._get_or_create_tag(session, name).id for name in sorted(chat.tags)}
            current = {
                link.tag_id
                for link in session.query(ChatTagLink).filter(ChatTagLink.chat_id == chat.id).all()
            }
            stale = current - wanted
            if stale:
                session.execute(
                    delete(ChatTagLink).where(
                        ChatTagLink.chat_id == chat.id,
                        ChatTagLink.tag_id.in_(stale),
                    )
                )
            for tag_id in sorted(wanted - current):
                session.add(ChatTagLink(chat_id=chat.id, tag_id=tag_id))
            session.commit()

    def load_chats(self) -> List[Chat]:
        """Every chat summary, most recent activity first."""
        with self._get_session() as session:
            records = session.query(ChatRecord).order_by(desc(ChatRecord.last_activity)).all()
            chats = []
            for record in records:
                last_message = None
                if record.last_message_id:
                    msg = session.get(MessageRecord, record.last_message_id)
                    if msg is not None:
                        last_message = _message_from_record(msg)

                context_ids: List[str] = []
                if record.context_ids_json:
                    try:
                        context_ids = json.loads(record.context_ids_json)
                    except json.JSONDecodeError:
                        logger.warning("Corrupt context_ids_json for chat %s", record.id)

                chats.append(Chat(
                    id=record.id,
                    title=record.title,
                    last_activity=_as_utc(record.last_activity),
                    last_message=last_message,
                    context_ids=set(context_ids),
                    unread_count=record.unread_count or 0,
                    is_archived=bool(record.is_archived),
                    tags=set(self._get_tag_names(session, record.id)),
                ))
            return chats

    def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat with its messages and tag associations."""
        with self._get_session() as session:
            record = session.get(ChatRecord, chat_id)
            has_messages = session.query(MessageRecord.id).filter(
                MessageRecord.chat_id == chat_id,
            ).first() is not None
            if record is None and not has_messages:
                return False
            self._delete_chat_cascade(session, chat_id)
            session.commit()
            return True

    def clear_all(self) -> int:
        """Delete every chat, message, tag and context. Returns count of chats deleted."""
        with self._get_session() as session:
            count = session.query(ChatRecord).count()
            session.execute(delete(ChatTagLink))
            session.execute(delete(MessageRecord))
            session.execute(delete(ChatRecord))
            session.execute(delete(TagRecord))
            session.execute(delete(ContextRecord))
            session.commit()
            return count

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    def save_known_tag(self, name: str) -> str:
        """Register a known tag if missing. Returns the tag id."""
        with self._get_session() as session:
            tag = self._get_or_create_tag(session, name)
            session.commit()
            return tag.id

    def list_known_tags(self) -> List[str]:
        """Known tag names in registration order."""
        with self._get_session() as session:
            tags = session.query(TagRecord).order_by(TagRecord.position).all()
            return [t.name for t in tags]

    def tag_counts(self) -> Dict[str, int]:
        """Number of chats carrying each known tag."""
        with self._get_session() as session:
            rows = session.query(TagRecord.name, func.count(ChatTagLink.chat_id)).outerjoin(
                ChatTagLink, ChatTagLink.tag_id == TagRecord.id,
            ).group_by(TagRecord.name).all()
            return {name: count for name, count in rows}

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------
    def save_context(self, context: Context) -> None:
        """Insert or replace a context library entry by id."""
        with self._get_session() as session:
            record = session.get(ContextRecord, context.id)
            if record is None:
                record = ContextRecord(id=context.id)
                session.add(record)
            record.title = context.title
            record.description = context.description
            record.content = context.content
            record.type = context.type
            record.tags_json = json.dumps(list(context.tags))
            record.category = context.category
            record.usage_count = context.usage_count
            record.last_used = _to_naive_utc(context.last_used) if context.last_used else None
            record.created_at = _to_naive_utc(context.created_at)
            record.updated_at = _to_naive_utc(context.updated_at)
            session.commit()

    def load_contexts(self) -> List[Context]:
        """The context library, newest first."""
        with self._get_session() as session:
            records = session.query(ContextRecord).order_by(desc(ContextRecord.created_at)).all()
            return [_context_from_record(r) for r in records]

    def delete_context(self, context_id: str) -> bool:
        """Delete a context library entry. Returns False if unknown."""
        with self._get_session() as session:
            if session.get(ContextRecord, context_id) is None:
                return False
            session.execute(delete(ContextRecord).where(ContextRecord.id == context_id))
            session.commit()
            return True

    def _get_or_create_tag(self, session: Session, name: str) -> TagRecord:
        tag = session.query(TagRecord).filter(TagRecord.name == name).first()
        if tag is None:
            position = session.query(func.count(TagRecord.id)).scalar() or 0
            tag = TagRecord(id=str(uuid.uuid4()), name=name, position=position)
            session.add(tag)
            session.flush()
        return tag

    def _get_tag_names(self, session: Session, chat_id: str) -> List[str]:
        """Get tag names for a chat."""
        links = session.query(ChatTagLink).filter(ChatTagLink.chat_id == chat_id).all()
        if not links:
            return []
        tag_ids = [link.tag_id for link in links]
        tags = session.query(TagRecord).filter(TagRecord.id.in_(tag_ids)).all()
        return [t.name for t in tags]

    def _delete_chat_cascade(self, session: Session, chat_id: str) -> None:
        """Delete a chat and all associated data (manual cascade)."""
        session.execute(delete(ChatTagLink).where(ChatTagLink.chat_id == chat_id))
        session.execute(delete(MessageRecord).where(MessageRecord.chat_id == chat_id))
        session.execute(delete(ChatRecord).where(ChatRecord.id == chat_id))


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _message_from_record(record: MessageRecord) -> Message:
    thinking = None
    if record.thinking_json:
        try:
            thinking = ThinkingRecord.from_dict(json.loads(record.thinking_json))
        except (json.JSONDecodeError, TypeError, KeyError, ValueError):
            logger.warning("Corrupt thinking_json for message %s", record.id)
    return Message(
        id=record.id,
        chat_id=record.chat_id,
        content=record.content or "",
        role=MessageRole(record.role),
        timestamp=_as_utc(record.timestamp),
        status=MessageStatus(record.status),
        thinking=thinking,
    )


def _context_from_record(record: ContextRecord) -> Context:
    tags: List[str] = []
    if record.tags_json:
        try:
            tags = json.loads(record.tags_json)
        except json.JSONDecodeError:
            logger.warning("Corrupt tags_json for context %s", record.id)
    return Context(
        id=record.id,
        title=record.title,
        description=record.description or "",
        content=record.content or "",
        type=record.type or "knowledge",
        tags=tags,
        category=record.category or "",
        usage_count=record.usage_count or 0,
        last_used=_as_utc(record.last_used) if record.last_used else None,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
    )
