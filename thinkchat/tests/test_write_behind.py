"""Tests for write-behind persistence outcomes."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from thinkchat.application.chat.persistence import WriteBehind, outcome
from thinkchat.domain.messages.models import Message


class TestWriteBehind:
    @pytest.mark.asyncio
    async def test_successful_write_resolves_true(self, storage):
        wb = WriteBehind(storage)
        task = wb.save_message(Message(id="m1", chat_id="c1", content="hi"))
        assert await outcome(task) is True
        assert [m.id for m in await storage.load_messages("c1")] == ["m1"]

    @pytest.mark.asyncio
    async def test_failed_write_resolves_false_and_logs(self, caplog):
        storage = AsyncMock()
        storage.save_known_tag.side_effect = RuntimeError("db locked")
        wb = WriteBehind(storage)

        with caplog.at_level(logging.ERROR):
            ok = await outcome(wb.save_known_tag("Work"))

        assert ok is False
        assert wb.failures == ["save_known_tag(Work)"]
        assert "db locked" in caplog.text

    def test_submit_without_loop_is_skipped(self, storage):
        wb = WriteBehind(storage)
        assert wb.save_message(Message(id="m1", chat_id="c1")) is None

    @pytest.mark.asyncio
    async def test_no_storage_means_no_task(self):
        wb = WriteBehind(None)
        assert wb.delete_chat("c1") is None
        assert await outcome(None) is False

    @pytest.mark.asyncio
    async def test_flush_waits_for_pending(self):
        done = []

        async def slow_save(tag):
            await asyncio.sleep(0.01)
            done.append(tag)

        storage = AsyncMock()
        storage.save_known_tag.side_effect = slow_save
        wb = WriteBehind(storage)
        wb.save_known_tag("a")
        wb.save_known_tag("b")
        assert wb.pending_count == 2

        await wb.flush()

        assert sorted(done) == ["a", "b"]
        assert wb.pending_count == 0

    @pytest.mark.asyncio
    async def test_writes_run_one_at_a_time_in_order(self):
        events = []

        async def save(tag):
            events.append(("start", tag))
            await asyncio.sleep(0.01)
            events.append(("end", tag))

        storage = AsyncMock()
        storage.save_known_tag.side_effect = save
        wb = WriteBehind(storage)
        for tag in ("a", "b", "c"):
            wb.save_known_tag(tag)

        await wb.flush()

        assert events == [
            ("start", "a"), ("end", "a"),
            ("start", "b"), ("end", "b"),
            ("start", "c"), ("end", "c"),
        ]
