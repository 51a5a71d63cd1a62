"""Structured thinking data model."""

from .models import Assumption, Confidence, ReasoningStep, ThinkingRecord, Uncertainty, thinking_item_id
from .normalizer import fallback_thinking, normalize
from .schema import RawThinking, StructuredResponse

__all__ = [
    "Assumption",
    "Confidence",
    "ReasoningStep",
    "ThinkingRecord",
    "Uncertainty",
    "thinking_item_id",
    "normalize",
    "fallback_thinking",
    "RawThinking",
    "StructuredResponse",
]
