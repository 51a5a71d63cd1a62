"""Domain models for structured AI thinking records.

A ThinkingRecord is attached to exactly one AI message. Every item id is
derived from the owning message id, the item type and a zero-based index, so
ids are unique within a message without any global counter.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Confidence(Enum):
    """Confidence / priority level."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: Any, default: Optional["Confidence"] = None) -> "Confidence":
        """Parse a raw value, falling back to ``default`` (MEDIUM) when unknown."""
        if isinstance(value, Confidence):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return default if default is not None else cls.MEDIUM


ASSUMPTION = "assumption"
UNCERTAINTY = "uncertainty"
REASONING = "reasoning"


def thinking_item_id(message_id: str, item_type: str, index: int) -> str:
    """Build the id of a thinking item, e.g. ``"42-assumption-0"``."""
    return f"{message_id}-{item_type}-{index}"


@dataclass
class Assumption:
    """An assumption the responder made while answering."""
    id: str
    text: str
    confidence: Confidence = Confidence.MEDIUM
    needs_user_input: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "confidence": self.confidence.value,
            "needs_user_input": self.needs_user_input,
        }


@dataclass
class Uncertainty:
    """An open question the responder could not resolve on its own."""
    id: str
    question: str
    suggested_contexts: List[str] = field(default_factory=list)
    priority: Confidence = Confidence.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "suggested_contexts": list(self.suggested_contexts),
            "priority": self.priority.value,
        }


@dataclass
class ReasoningStep:
    """One step of the reasoning chain (``step`` is 1-based)."""
    id: str
    step: int
    description: str
    confidence: Confidence = Confidence.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "step": self.step,
            "description": self.description,
            "confidence": self.confidence.value,
        }


@dataclass
class ThinkingRecord:
    """Structured introspection data attached to one AI message."""
    message_id: str
    assumptions: List[Assumption] = field(default_factory=list)
    uncertainties: List[Uncertainty] = field(default_factory=list)
    confidence_level: Confidence = Confidence.MEDIUM
    reasoning_chain: List[ReasoningStep] = field(default_factory=list)
    suggested_contexts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "message_id": self.message_id,
            "assumptions": [a.to_dict() for a in self.assumptions],
            "uncertainties": [u.to_dict() for u in self.uncertainties],
            "confidence_level": self.confidence_level.value,
            "reasoning_chain": [s.to_dict() for s in self.reasoning_chain],
            "suggested_contexts": list(self.suggested_contexts),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThinkingRecord":
        """Create from a dictionary produced by ``to_dict``."""
        return cls(
            message_id=str(data.get("message_id", "")),
            assumptions=[
                Assumption(
                    id=a["id"],
                    text=a.get("text", ""),
                    confidence=Confidence.parse(a.get("confidence")),
                    needs_user_input=bool(a.get("needs_user_input", False)),
                )
                for a in data.get("assumptions", [])
            ],
            uncertainties=[
                Uncertainty(
                    id=u["id"],
                    question=u.get("question", ""),
                    suggested_contexts=list(u.get("suggested_contexts", [])),
                    priority=Confidence.parse(u.get("priority")),
                )
                for u in data.get("uncertainties", [])
            ],
            confidence_level=Confidence.parse(data.get("confidence_level")),
            reasoning_chain=[
                ReasoningStep(
                    id=s["id"],
                    step=int(s.get("step", i + 1)),
                    description=s.get("description", ""),
                    confidence=Confidence.parse(s.get("confidence")),
                )
                for i, s in enumerate(data.get("reasoning_chain", []))
            ],
            suggested_contexts=list(data.get("suggested_contexts", [])),
        )

    def find_item(self, item_id: str) -> Optional[Any]:
        """Look up an assumption, uncertainty or reasoning step by id."""
        for item in (*self.assumptions, *self.uncertainties, *self.reasoning_chain):
            if item.id == item_id:
                return item
        return None
