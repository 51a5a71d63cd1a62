"""Tests for the in-memory storage adapter."""

from datetime import datetime, timedelta, timezone

import pytest

from thinkchat.domain.chats.models import Chat
from thinkchat.domain.messages.models import Message
from thinkchat.infrastructure.storage.in_memory_storage import InMemoryStorage
from thinkchat.interfaces.storage import StorageProtocol


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_messages_sorted_by_timestamp():
    storage = InMemoryStorage()
    await storage.save_message(Message(id="late", chat_id="c", timestamp=NOW + timedelta(seconds=5)))
    await storage.save_message(Message(id="early", chat_id="c", timestamp=NOW))
    await storage.save_message(Message(id="other", chat_id="d", timestamp=NOW))

    assert [m.id for m in await storage.load_messages("c")] == ["early", "late"]


@pytest.mark.asyncio
async def test_save_is_a_copy():
    storage = InMemoryStorage()
    message = Message(id="m", chat_id="c", content="before")
    await storage.save_message(message)
    message.content = "after"

    assert (await storage.load_messages("c"))[0].content == "before"


@pytest.mark.asyncio
async def test_chats_most_recent_first_and_delete_cascades():
    storage = InMemoryStorage()
    await storage.save_chat(Chat(id="old", title="Old", last_activity=NOW))
    await storage.save_chat(Chat(id="new", title="New", last_activity=NOW + timedelta(hours=1)))
    await storage.save_message(Message(id="m", chat_id="old"))

    assert [c.id for c in await storage.load_chats()] == ["new", "old"]

    await storage.delete_chat("old")
    assert [c.id for c in await storage.load_chats()] == ["new"]
    assert await storage.load_messages("old") == []


@pytest.mark.asyncio
async def test_known_tags_and_clear():
    storage = InMemoryStorage()
    await storage.save_known_tag("Work")
    await storage.save_known_tag("Work")
    await storage.save_known_tag("Home")
    assert await storage.load_known_tags() == ["Work", "Home"]

    await storage.clear_all_data()
    assert await storage.load_known_tags() == []


def test_satisfies_storage_protocol():
    storage: StorageProtocol = InMemoryStorage()
    assert callable(storage.load_known_tags)
