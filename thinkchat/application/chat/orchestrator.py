"""AI response orchestrator - drives one user turn end to end.

Turn lifecycle::

    USER_COMMITTED -> PLACEHOLDER_CREATED -> AWAITING_REMOTE
        -> RESOLVED | RECOVERED | FALLBACK -> PERSISTED

Unclassified exceptions end the turn in FAILED with a visible system
message. A response for a chat deleted while the call was in flight ends in
DROPPED: nothing is re-inserted for a chat that is gone.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence

from thinkchat.core.ids import IdGenerator, UuidIdGenerator
from thinkchat.core.log_sanitizer import preview, sanitize_for_logging
from thinkchat.domain.errors import ResponderServiceError
from thinkchat.domain.messages.models import Context, Message, MessageRole, MessageStatus
from thinkchat.domain.thinking.normalizer import fallback_thinking, normalize
from thinkchat.domain.thinking.schema import StructuredResponse
from thinkchat.interfaces.responder import ResponderProtocol

from .persistence import WriteBehind, outcome
from .store import ChatStore
from .utilities import error_handler

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = (
    "I apologize, but I'm currently unable to connect to the AI service. "
    "This is a fallback response to demonstrate the interface."
)


class TurnState(Enum):
    """States of one outstanding AI turn."""
    USER_COMMITTED = "user_committed"
    PLACEHOLDER_CREATED = "placeholder_created"
    AWAITING_REMOTE = "awaiting_remote"
    RESOLVED = "resolved"
    RECOVERED = "recovered"
    FALLBACK = "fallback"
    PERSISTED = "persisted"
    FAILED = "failed"
    DROPPED = "dropped"


@dataclass
class TurnResult:
    """Outcome of ``ResponseOrchestrator.execute``."""
    chat_id: str
    state: Optional[TurnState] = None
    history: List[TurnState] = field(default_factory=list)
    user_message: Optional[Message] = None
    ai_message: Optional[Message] = None
    error_message: Optional[Message] = None
    persisted: bool = False
    error: Optional[str] = None

    def advance(self, state: TurnState) -> None:
        self.state = state
        self.history.append(state)

    @property
    def resolution(self) -> Optional[TurnState]:
        """How the AI message was produced: RESOLVED, RECOVERED or FALLBACK."""
        for state in reversed(self.history):
            if state in (TurnState.RESOLVED, TurnState.RECOVERED, TurnState.FALLBACK):
                return state
        return None

    def to_dict(self) -> dict:
        return {
            "chat_id": self.chat_id,
            "state": self.state.value if self.state else None,
            "history": [s.value for s in self.history],
            "resolution": self.resolution.value if self.resolution else None,
            "user_message": self.user_message.to_dict() if self.user_message else None,
            "ai_message": self.ai_message.to_dict() if self.ai_message else None,
            "error_message": self.error_message.to_dict() if self.error_message else None,
            "persisted": self.persisted,
            "error": self.error,
        }


class ResponseOrchestrator:
    """
    Runs the request/response cycle for a single user turn.

    Only one turn per chat is expected in flight (the UI serializes sends);
    this is not enforced, so the reconcile step re-reads the store instead of
    trusting the placeholder reference it created.
    """

    def __init__(
        self,
        store: ChatStore,
        responder: Optional[ResponderProtocol],
        write_behind: WriteBehind,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.store = store
        self.responder = responder
        self.write_behind = write_behind
        self.id_generator = id_generator or UuidIdGenerator()

    async def execute(
        self,
        chat_id: str,
        content: str,
        contexts: Sequence[Context] = (),
    ) -> TurnResult:
        """Commit the user's message and produce the AI reply for it."""
        turn = TurnResult(chat_id=chat_id)
        chat_known = self.store.has_chat(chat_id)
        logger.info(
            "Starting turn in chat %s: content_length=%d, contexts=%d",
            sanitize_for_logging(chat_id),
            len(content),
            len(contexts),
        )

        self.store.set_typing(True)
        try:
            turn.user_message = await self._commit_user_message(chat_id, content)
            turn.advance(TurnState.USER_COMMITTED)

            placeholder = Message(
                id=self.id_generator.new_id(),
                chat_id=chat_id,
                content="",
                role=MessageRole.AI,
                status=MessageStatus.SENDING,
            )
            # Not persisted until the final content is known
            self.store.append(placeholder)
            turn.advance(TurnState.PLACEHOLDER_CREATED)

            history = [m for m in self.store.messages_for(chat_id) if m.id != placeholder.id]
            turn.advance(TurnState.AWAITING_REMOTE)
            logger.debug(
                "Calling responder with %d messages (%d delivered), placeholder %s excluded",
                len(history),
                sum(1 for m in history if m.is_delivered),
                placeholder.id,
            )

            try:
                response = await self._call_responder(history, contexts)
            except Exception as e:
                if not error_handler.is_responder_failure(e):
                    raise
                logger.warning("Responder failed, using fallback reply: %s", sanitize_for_logging(e))
                final = self._apply_fallback(placeholder)
                turn.advance(TurnState.FALLBACK)
            else:
                final = self._reconcile(turn, placeholder, response, chat_known)

            turn.ai_message = final
            if final is None:
                return turn

            turn.persisted = await outcome(self.write_behind.save_message(final))
            turn.advance(TurnState.PERSISTED)
            logger.info(
                "Turn finished in chat %s via %s: response_length=%d, persisted=%s",
                sanitize_for_logging(chat_id),
                turn.resolution.value if turn.resolution else "unknown",
                len(final.content),
                turn.persisted,
            )
        except Exception as e:
            logger.error("Error during AI response generation: %s", sanitize_for_logging(e), exc_info=True)
            turn.error = error_handler.format_turn_error(e)
            turn.error_message = Message(
                id=self.id_generator.new_id(),
                chat_id=chat_id,
                content=turn.error,
                role=MessageRole.SYSTEM,
                status=MessageStatus.DELIVERED,
            )
            self.store.append(turn.error_message)
            await outcome(self.write_behind.save_message(turn.error_message))
            turn.advance(TurnState.FAILED)
        finally:
            self.store.set_typing(False)
        return turn

    async def _commit_user_message(self, chat_id: str, content: str) -> Message:
        user_message = Message(
            id=self.id_generator.new_id(),
            chat_id=chat_id,
            content=content,
            role=MessageRole.USER,
            status=MessageStatus.SENDING,
        )
        self.store.append(user_message)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Created user message %s: %r", user_message.id, preview(content))
        # Best-effort: the in-memory copy is authoritative for the session
        await outcome(self.write_behind.save_message(user_message))
        self.store.update(user_message.id, status=MessageStatus.DELIVERED)
        self.write_behind.save_message(user_message)
        return user_message

    async def _call_responder(self, history: List[Message], contexts: Sequence[Context]) -> StructuredResponse:
        if self.responder is None:
            raise ResponderServiceError("No AI responder configured", code="RESPONDER_NOT_CONFIGURED")
        return await self.responder.get_structured_response(history, contexts)

    def _reconcile(
        self,
        turn: TurnResult,
        placeholder: Message,
        response: StructuredResponse,
        chat_known: bool,
    ) -> Optional[Message]:
        """Write the reply onto the placeholder, re-creating it if it was lost."""
        thinking = normalize(response.thinking, placeholder.id)

        if self.store.get_message(placeholder.id, chat_id=placeholder.chat_id) is not None:
            updated = self.store.update(
                placeholder.id,
                content=response.response,
                status=MessageStatus.DELIVERED,
                thinking=thinking,
            )
            turn.advance(TurnState.RESOLVED)
            return updated

        if chat_known and not self.store.has_chat(placeholder.chat_id):
            logger.warning(
                "Chat %s was deleted while awaiting the responder; dropping reply %s",
                sanitize_for_logging(placeholder.chat_id),
                placeholder.id,
            )
            turn.advance(TurnState.DROPPED)
            return None

        logger.error(
            "Placeholder %s lost during responder call, recreating (chat has %d messages)",
            placeholder.id,
            len(self.store.messages_for(placeholder.chat_id)),
        )
        recovered = Message(
            id=placeholder.id,
            chat_id=placeholder.chat_id,
            content=response.response,
            role=MessageRole.AI,
            timestamp=datetime.now(timezone.utc),
            status=MessageStatus.DELIVERED,
            thinking=thinking,
        )
        self.store.append(recovered)
        turn.advance(TurnState.RECOVERED)
        return recovered

    def _apply_fallback(self, placeholder: Message) -> Optional[Message]:
        """Fill the placeholder with the canned reply.

        No recovery here: the failure is detected right after the call, so the
        placeholder is assumed to still exist. If it does not, the update is
        reported by the store and nothing is persisted.
        """
        return self.store.update(
            placeholder.id,
            content=FALLBACK_RESPONSE,
            status=MessageStatus.DELIVERED,
            thinking=fallback_thinking(placeholder.id),
        )
