"""Chat history persistence module using SQLAlchemy with DuckDB."""

from .chat_repository import ChatRepository
from .database import get_engine, get_session_factory, init_database, reset_engine
from .models import Base, ChatRecord, ChatTagLink, ContextRecord, MessageRecord, TagRecord
from .sql_storage import SqlStorage

__all__ = [
    "get_engine",
    "get_session_factory",
    "init_database",
    "reset_engine",
    "ChatRepository",
    "SqlStorage",
    "Base",
    "ChatRecord",
    "ChatTagLink",
    "ContextRecord",
    "MessageRecord",
    "TagRecord",
]
