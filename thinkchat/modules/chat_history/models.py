"""SQLAlchemy models for chat history persistence.

Uses String ids and Text for JSON to maximize DuckDB compatibility.
No database-level foreign key constraints since DuckDB does not support
CASCADE or UPDATE on FK-constrained tables. Referential integrity is
enforced in the repository layer.

Timestamps are stored as naive UTC.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _now_naive_utc():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ChatRecord(Base):
    """A chat summary as shown in the chat list."""

    __tablename__ = "chats"

    id = Column(String(64), primary_key=True)
    title = Column(String(500), nullable=False)
    last_activity = Column(DateTime, default=_now_naive_utc, nullable=False)
    last_message_id = Column(String(64), nullable=True)
    context_ids_json = Column(Text, nullable=True)
    unread_count = Column(Integer, default=0, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now_naive_utc, nullable=False)


class MessageRecord(Base):
    """A single message within a chat."""

    __tablename__ = "chat_messages"

    id = Column(String(64), primary_key=True)
    chat_id = Column(String(64), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="delivered")
    timestamp = Column(DateTime, default=_now_naive_utc, nullable=False)
    thinking_json = Column(Text, nullable=True)


class ChatTagLink(Base):
    """Junction table for chat-tag many-to-many relationship."""

    __tablename__ = "chat_tags"

    chat_id = Column(String(64), primary_key=True)
    tag_id = Column(String(36), primary_key=True)


class TagRecord(Base):
    """A known tag. ``position`` keeps registration order."""

    __tablename__ = "tags"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=_now_naive_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint("name", name="uq_tag_name"),
    )


class ContextRecord(Base):
    """An entry in the context library. Attachment lives on ``ChatRecord``."""

    __tablename__ = "contexts"

    id = Column(String(64), primary_key=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default="knowledge")
    tags_json = Column(Text, nullable=True)
    category = Column(String(200), nullable=True)
    usage_count = Column(Integer, default=0, nullable=False)
    last_used = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now_naive_utc, nullable=False)
    updated_at = Column(DateTime, default=_now_naive_utc, nullable=False)
