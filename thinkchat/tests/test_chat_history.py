"""Tests for the SQL chat history persistence module.

Tests cover: database init, message and chat upserts, ordering, tag links,
cascading deletes and the async storage adapter.
Uses a temporary DuckDB file for fast, isolated tests.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

from thinkchat.domain.chats.models import Chat
from thinkchat.domain.messages.models import Context, Message, MessageRole, MessageStatus
from thinkchat.domain.thinking import normalize

# Ensure clean engine state before each test
from thinkchat.modules.chat_history.database import reset_engine

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clean_engine():
    """Reset the global engine before and after each test."""
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def db_path(tmp_path):
    """Provide a temporary DuckDB file path."""
    return str(tmp_path / "test_chat_history.db")


@pytest.fixture
def repo(db_path):
    """Create a ChatRepository backed by a temp DuckDB."""
    from thinkchat.modules.chat_history import ChatRepository, get_session_factory, init_database

    init_database(f"duckdb:///{db_path}")
    return ChatRepository(get_session_factory())


def _message(mid, chat_id="chat-1", seconds=0, role=MessageRole.USER, content=None, thinking=None):
    return Message(
        id=mid,
        chat_id=chat_id,
        content=content if content is not None else f"content {mid}",
        role=role,
        timestamp=NOW + timedelta(seconds=seconds),
        status=MessageStatus.DELIVERED,
        thinking=thinking,
    )


class TestDatabaseInit:
    def test_init_creates_tables(self, db_path):
        from thinkchat.modules.chat_history import init_database
        engine = init_database(f"duckdb:///{db_path}")
        assert engine is not None
        assert os.path.exists(db_path)

    def test_init_idempotent(self, db_path):
        from thinkchat.modules.chat_history import init_database
        init_database(f"duckdb:///{db_path}")
        reset_engine()
        init_database(f"duckdb:///{db_path}")


class TestMessages:
    def test_messages_ordered_by_timestamp(self, repo):
        repo.save_message(_message("b", seconds=10))
        repo.save_message(_message("a", seconds=0))
        repo.save_message(_message("x", chat_id="other"))

        loaded = repo.load_messages("chat-1")

        assert [m.id for m in loaded] == ["a", "b"]
        assert loaded[0].timestamp == NOW
        assert loaded[0].timestamp.tzinfo is not None

    def test_save_message_upserts(self, repo):
        message = _message("m1", content="")
        message.status = MessageStatus.SENDING
        repo.save_message(message)

        message.content = "final"
        message.status = MessageStatus.DELIVERED
        repo.save_message(message)

        loaded = repo.load_messages("chat-1")
        assert len(loaded) == 1
        assert loaded[0].content == "final"
        assert loaded[0].status is MessageStatus.DELIVERED

    def test_thinking_round_trip(self, repo):
        thinking = normalize(
            {"assumptions": [{"text": "A", "confidence": "high"}], "reasoningSteps": ["one", "two"]},
            "ai-1",
        )
        repo.save_message(_message("ai-1", role=MessageRole.AI, thinking=thinking))

        loaded = repo.load_messages("chat-1")[0]

        assert loaded.role is MessageRole.AI
        assert loaded.thinking == thinking


class TestChats:
    def test_save_and_load_chat(self, repo):
        last = _message("m1")
        repo.save_message(last)
        repo.save_chat(Chat(
            id="chat-1",
            title="Planning",
            last_activity=NOW,
            last_message=last,
            context_ids={"ctx-2", "ctx-1"},
            unread_count=2,
            tags={"Work", "Important"},
        ))

        chats = repo.load_chats()

        assert len(chats) == 1
        chat = chats[0]
        assert chat.title == "Planning"
        assert chat.last_message.id == "m1"
        assert chat.context_ids == {"ctx-1", "ctx-2"}
        assert chat.unread_count == 2
        assert chat.tags == {"Work", "Important"}
        assert chat.last_activity == NOW

    def test_chats_most_recent_first(self, repo):
        repo.save_chat(Chat(id="old", title="Old", last_activity=NOW))
        repo.save_chat(Chat(id="new", title="New", last_activity=NOW + timedelta(minutes=5)))
        assert [c.id for c in repo.load_chats()] == ["new", "old"]

    def test_save_chat_updates_tags(self, repo):
        chat = Chat(id="chat-1", title="T", last_activity=NOW, tags={"Work", "Home"})
        repo.save_chat(chat)

        chat.tags = {"Home", "Research"}
        chat.title = "Renamed"
        repo.save_chat(chat)

        loaded = repo.load_chats()[0]
        assert loaded.tags == {"Home", "Research"}
        assert loaded.title == "Renamed"
        # Tags stay known after being unassigned
        assert set(repo.list_known_tags()) == {"Work", "Home", "Research"}

    def test_delete_chat_cascades(self, repo):
        repo.save_chat(Chat(id="chat-1", title="T", last_activity=NOW, tags={"Work"}))
        repo.save_message(_message("m1"))
        repo.save_message(_message("m2", chat_id="chat-2"))

        assert repo.delete_chat("chat-1") is True

        assert repo.load_chats() == []
        assert repo.load_messages("chat-1") == []
        assert [m.id for m in repo.load_messages("chat-2")] == ["m2"]
        assert repo.tag_counts() == {"Work": 0}

    def test_delete_unknown_chat(self, repo):
        assert repo.delete_chat("missing") is False

    def test_clear_all(self, repo):
        repo.save_chat(Chat(id="a", title="A", last_activity=NOW, tags={"Work"}))
        repo.save_chat(Chat(id="b", title="B", last_activity=NOW))
        repo.save_message(_message("m1", chat_id="a"))

        assert repo.clear_all() == 2
        assert repo.load_chats() == []
        assert repo.list_known_tags() == []


class TestKnownTags:
    def test_registration_order_and_idempotence(self, repo):
        first = repo.save_known_tag("Work")
        repo.save_known_tag("Personal")
        again = repo.save_known_tag("Work")

        assert first == again
        assert repo.list_known_tags() == ["Work", "Personal"]

    def test_tag_counts(self, repo):
        repo.save_chat(Chat(id="a", title="A", last_activity=NOW, tags={"Work"}))
        repo.save_chat(Chat(id="b", title="B", last_activity=NOW, tags={"Work", "Home"}))
        assert repo.tag_counts() == {"Work": 2, "Home": 1}


class TestContexts:
    def test_context_round_trip(self, repo):
        context = Context(
            id="ctx-1",
            title="Style guide",
            content="Be brief",
            tags=["writing", "house"],
            usage_count=3,
            last_used=NOW,
            created_at=NOW,
            updated_at=NOW,
        )
        repo.save_context(context)

        assert repo.load_contexts() == [context]

    def test_contexts_newest_first_and_upsert(self, repo):
        repo.save_context(Context(id="old", title="Old", created_at=NOW))
        repo.save_context(Context(id="new", title="New", created_at=NOW + timedelta(minutes=1)))
        repo.save_context(Context(id="old", title="Old renamed", created_at=NOW))

        loaded = repo.load_contexts()
        assert [c.id for c in loaded] == ["new", "old"]
        assert loaded[1].title == "Old renamed"

    def test_delete_context(self, repo):
        repo.save_context(Context(id="ctx-1", title="T", created_at=NOW))
        assert repo.delete_context("ctx-1") is True
        assert repo.delete_context("ctx-1") is False
        assert repo.load_contexts() == []

    def test_clear_all_removes_contexts(self, repo):
        repo.save_context(Context(id="ctx-1", title="T", created_at=NOW))
        repo.clear_all()
        assert repo.load_contexts() == []


class TestSqlStorage:
    @pytest.mark.asyncio
    async def test_storage_protocol_round_trip(self, db_path):
        from thinkchat.modules.chat_history import SqlStorage

        storage = SqlStorage.from_url(f"duckdb:///{db_path}")
        await storage.save_message(_message("m1"))
        await storage.save_chat(Chat(id="chat-1", title="T", last_activity=NOW, tags={"Work"}))
        await storage.save_known_tag("Personal")
        await storage.save_context(Context(id="ctx-1", title="Docs", created_at=NOW))

        assert [m.id for m in await storage.load_messages("chat-1")] == ["m1"]
        assert [c.id for c in await storage.load_chats()] == ["chat-1"]
        assert await storage.load_known_tags() == ["Work", "Personal"]
        assert [c.id for c in await storage.load_contexts()] == ["ctx-1"]

        await storage.delete_chat("chat-1")
        assert await storage.load_chats() == []

        await storage.clear_all_data()
        assert await storage.load_known_tags() == []


class TestServiceOverSql:
    """ChatService writes against a real DuckDB file."""

    @pytest.fixture
    def make_service(self, db_path, responder):
        from thinkchat.application.chat.service import ChatService
        from thinkchat.core.ids import SequentialIdGenerator
        from thinkchat.modules.chat_history import SqlStorage

        def _make():
            reset_engine()
            return ChatService(
                storage=SqlStorage.from_url(f"duckdb:///{db_path}"),
                responder=responder,
                id_generator=SequentialIdGenerator(prefix="id-"),
            )
        return _make

    @pytest.mark.asyncio
    async def test_new_chat_and_turn_write_cleanly(self, make_service):
        service = make_service()
        chat = service.create_new_chat("Planning")
        await service.send_message(chat.id, "Hello")
        await service.flush()

        assert service.write_behind.failures == []
        stored = await service.storage.load_messages(chat.id)
        assert [m.role for m in stored] == [MessageRole.USER, MessageRole.AI]
        assert stored[0].status is MessageStatus.DELIVERED

    @pytest.mark.asyncio
    async def test_novel_tags_survive_reload(self, make_service):
        service = make_service()
        chat = service.create_new_chat("Planning")
        service.add_tag(chat.id, "Novel")
        service.add_tag(chat.id, "Other")
        await service.send_message(chat.id, "Hello")
        await service.flush()

        assert service.write_behind.failures == []

        reloaded = make_service()
        chats = await reloaded.load_chats_from_storage()
        assert chats[0].tags == {"Novel", "Other"}
        assert {"Novel", "Other"} <= set(reloaded.tags.known_tags)
