"""Map raw responder thinking payloads onto message-scoped ThinkingRecords.

Pure functions: no I/O, no failure mode. Anything malformed degrades to an
empty or default value.
"""

import logging
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from .models import (
    ASSUMPTION,
    REASONING,
    UNCERTAINTY,
    Assumption,
    Confidence,
    ReasoningStep,
    ThinkingRecord,
    Uncertainty,
    thinking_item_id,
)
from .schema import RawThinking

logger = logging.getLogger(__name__)

RawThinkingInput = Union[RawThinking, dict, None]


def coerce_raw_thinking(raw: Any) -> RawThinking:
    """Validate ``raw`` into a RawThinking, returning an empty one on failure."""
    if isinstance(raw, RawThinking):
        return raw
    if not isinstance(raw, dict):
        return RawThinking()
    try:
        return RawThinking.model_validate(raw)
    except PydanticValidationError as e:
        logger.warning("Discarding malformed thinking payload: %d validation errors", e.error_count())
        return RawThinking()


def normalize(raw: RawThinkingInput, message_id: str) -> ThinkingRecord:
    """Build the ThinkingRecord for ``message_id`` from a raw thinking payload.

    Item ids are ``<message_id>-<type>-<index>``; reasoning steps are numbered
    from 1 in payload order. Arrays missing from the payload become empty and
    the overall confidence defaults to medium.
    """
    thinking = coerce_raw_thinking(raw)

    return ThinkingRecord(
        message_id=message_id,
        assumptions=[
            Assumption(
                id=thinking_item_id(message_id, ASSUMPTION, index),
                text=assumption.text,
                confidence=Confidence.parse(assumption.confidence),
                needs_user_input=False,
            )
            for index, assumption in enumerate(thinking.assumptions)
        ],
        uncertainties=[
            Uncertainty(
                id=thinking_item_id(message_id, UNCERTAINTY, index),
                question=uncertainty.question,
                suggested_contexts=list(uncertainty.suggested_contexts),
                priority=Confidence.parse(uncertainty.priority),
            )
            for index, uncertainty in enumerate(thinking.uncertainties)
        ],
        confidence_level=Confidence.parse(thinking.confidence_level),
        reasoning_chain=[
            ReasoningStep(
                id=thinking_item_id(message_id, REASONING, index),
                step=index + 1,
                description=description,
                confidence=Confidence.MEDIUM,
            )
            for index, description in enumerate(thinking.reasoning_steps)
        ],
        suggested_contexts=[sc.title for sc in thinking.suggested_contexts if sc.title],
    )


def fallback_thinking(message_id: str) -> ThinkingRecord:
    """Canned record attached to the fallback reply when the responder is down."""
    return ThinkingRecord(
        message_id=message_id,
        assumptions=[
            Assumption(
                id=thinking_item_id(message_id, ASSUMPTION, 0),
                text="Service is temporarily unavailable",
                confidence=Confidence.HIGH,
            ),
            Assumption(
                id=thinking_item_id(message_id, ASSUMPTION, 1),
                text="User understands this is a fallback response",
                confidence=Confidence.MEDIUM,
            ),
        ],
        uncertainties=[
            Uncertainty(
                id=thinking_item_id(message_id, UNCERTAINTY, 0),
                question="When will the AI service be restored?",
                suggested_contexts=["System Status", "Service Updates"],
                priority=Confidence.HIGH,
            ),
        ],
        confidence_level=Confidence.LOW,
        reasoning_chain=[
            ReasoningStep(
                id=thinking_item_id(message_id, REASONING, 0),
                step=1,
                description="Detected service unavailability",
                confidence=Confidence.HIGH,
            ),
            ReasoningStep(
                id=thinking_item_id(message_id, REASONING, 1),
                step=2,
                description="Activated fallback response system",
                confidence=Confidence.HIGH,
            ),
        ],
        suggested_contexts=["Service Status", "Alternative Solutions"],
    )
