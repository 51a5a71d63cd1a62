"""Domain models for messages."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..thinking.models import ThinkingRecord


class MessageRole(Enum):
    """Message role enumeration."""
    USER = "user"
    AI = "ai"
    SYSTEM = "system"


class MessageStatus(Enum):
    """Message status. The only transition is SENDING -> DELIVERED."""
    SENDING = "sending"
    DELIVERED = "delivered"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return _now_utc()


@dataclass
class Message:
    """Domain model for a chat message."""
    id: str
    chat_id: str
    content: str = ""
    role: MessageRole = MessageRole.USER
    timestamp: datetime = field(default_factory=_now_utc)
    status: MessageStatus = MessageStatus.SENDING
    thinking: Optional[ThinkingRecord] = None

    @property
    def is_delivered(self) -> bool:
        return self.status is MessageStatus.DELIVERED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "chat_id": self.chat_id,
            "content": self.content,
            "role": self.role.value,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "thinking": self.thinking.to_dict() if self.thinking else None,
        }

    def to_responder_dict(self) -> Dict[str, Any]:
        """Wire shape sent to the AI responder (no thinking data)."""
        return {
            "id": self.id,
            "chatId": self.chat_id,
            "content": self.content,
            "type": self.role.value,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Create from dictionary."""
        thinking = data.get("thinking")
        return cls(
            id=str(data["id"]),
            chat_id=str(data.get("chat_id", "")),
            content=data.get("content") or "",
            role=MessageRole(data.get("role", "user")),
            timestamp=_parse_timestamp(data.get("timestamp")),
            status=MessageStatus(data.get("status", "delivered")),
            thinking=ThinkingRecord.from_dict(thinking) if thinking else None,
        )


@dataclass
class Context:
    """A knowledge context from the context library, forwarded to the responder."""
    id: str
    title: str
    description: str = ""
    content: str = ""
    type: str = "knowledge"  # "knowledge" | "document" | "chat"
    tags: List[str] = field(default_factory=list)
    category: str = ""
    usage_count: int = 0
    last_used: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now_utc)
    updated_at: datetime = field(default_factory=_now_utc)

    def matches(self, query: str) -> bool:
        """Case-insensitive match on title, description, content or tags."""
        needle = query.strip().lower()
        if not needle:
            return True
        haystack = [self.title, self.description, self.content, *self.tags]
        return any(needle in value.lower() for value in haystack)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.to_responder_dict(),
            "usage_count": self.usage_count,
            "last_used": self.last_used.isoformat() if self.last_used else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_responder_dict(self) -> Dict[str, Any]:
        """Wire shape sent to the AI responder (no bookkeeping fields)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "type": self.type,
            "tags": list(self.tags),
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Context":
        last_used = data.get("last_used")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            content=data.get("content", ""),
            type=data.get("type", "knowledge"),
            tags=list(data.get("tags", [])),
            category=data.get("category", ""),
            usage_count=int(data.get("usage_count", 0)),
            last_used=_parse_timestamp(last_used) if last_used else None,
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )
