"""Domain models for chats."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from ..messages.models import Message, _parse_timestamp


@dataclass
class Chat:
    """Domain model for a chat summary in the chat index."""
    id: str
    title: str
    last_activity: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_message: Optional[Message] = None
    context_ids: Set[str] = field(default_factory=set)
    unread_count: int = 0
    is_archived: bool = False
    tags: Set[str] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "last_activity": self.last_activity.isoformat(),
            "last_message": self.last_message.to_dict() if self.last_message else None,
            "context_ids": sorted(self.context_ids),
            "unread_count": self.unread_count,
            "is_archived": self.is_archived,
            "tags": sorted(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chat":
        """Create from dictionary."""
        last_message = data.get("last_message")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "Untitled",
            last_activity=_parse_timestamp(data.get("last_activity")),
            last_message=Message.from_dict(last_message) if last_message else None,
            context_ids=set(data.get("context_ids", [])),
            unread_count=int(data.get("unread_count", 0)),
            is_archived=bool(data.get("is_archived", False)),
            tags=set(data.get("tags", [])),
        )

    def touch(self, when: Optional[datetime] = None) -> None:
        """Update the last activity timestamp."""
        self.last_activity = when or datetime.now(timezone.utc)
