"""Write-behind persistence with an explicit outcome channel.

Every storage write is scheduled as an ``asyncio.Task`` that resolves to
``True`` on success and ``False`` on failure. Callers choose whether to await
the outcome or ignore it; failures are logged here and never raised, because
the in-memory store stays authoritative for the session.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.chats.models import Chat
from thinkchat.domain.messages.models import Context, Message
from thinkchat.interfaces.storage import StorageProtocol

logger = logging.getLogger(__name__)


class WriteBehind:
    """Schedules best-effort storage writes and tracks their outcomes."""

    def __init__(self, storage: Optional[StorageProtocol]):
        self.storage = storage
        self._pending: Set["asyncio.Task[bool]"] = set()
        # Writes run one at a time, in submission order
        self._lock = asyncio.Lock()
        self.failures: List[str] = []

    def submit(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Optional["asyncio.Task[bool]"]:
        """Schedule ``func(*args)`` and return its outcome task.

        Returns None when there is no running event loop (purely synchronous
        use of the store); the write is skipped in that case.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipped %s", operation)
            return None

        task = loop.create_task(self._run(operation, func, *args))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, operation: str, func: Callable[..., Awaitable[Any]], *args: Any) -> bool:
        async with self._lock:
            try:
                await func(*args)
                return True
            except Exception as e:
                self.failures.append(operation)
                logger.error(
                    "Persistence failure during %s: %s", operation, sanitize_for_logging(e), exc_info=True
                )
                return False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        """Wait until every scheduled write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # ------------------------------------------------------------------
    # Storage operations
    # ------------------------------------------------------------------
    def save_message(self, message: Message) -> Optional["asyncio.Task[bool]"]:
        if self.storage is None:
            return None
        return self.submit(f"save_message({message.id})", self.storage.save_message, message)

    def save_chat(self, chat: Chat) -> Optional["asyncio.Task[bool]"]:
        if self.storage is None:
            return None
        return self.submit(f"save_chat({chat.id})", self.storage.save_chat, chat)

    def delete_chat(self, chat_id: str) -> Optional["asyncio.Task[bool]"]:
        if self.storage is None:
            return None
        return self.submit(f"delete_chat({chat_id})", self.storage.delete_chat, chat_id)

    def save_known_tag(self, tag: str) -> Optional["asyncio.Task[bool]"]:
        if self.storage is None:
            return None
        return self.submit(f"save_known_tag({tag})", self.storage.save_known_tag, tag)

    def save_context(self, context: Context) -> Optional["asyncio.Task[bool]"]:
        if self.storage is None:
            return None
        return self.submit(f"save_context({context.id})", self.storage.save_context, context)

    def delete_context(self, context_id: str) -> Optional["asyncio.Task[bool]"]:
        if self.storage is None:
            return None
        return self.submit(f"delete_context({context_id})", self.storage.delete_context, context_id)

    def clear_all_data(self) -> Optional["asyncio.Task[bool]"]:
        if self.storage is None:
            return None
        return self.submit("clear_all_data", self.storage.clear_all_data)


async def outcome(task: Optional["asyncio.Task[bool]"]) -> bool:
    """Await a write-behind task; a skipped write counts as not persisted."""
    if task is None:
        return False
    return await task
