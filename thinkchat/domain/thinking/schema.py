"""Pydantic models for the raw responder payload.

The responder payload is validated once, here, at the boundary. Every field
is lenient: unknown keys are kept, malformed items are dropped or defaulted,
so downstream code never has to second-guess the shape.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ConfidenceValue = Literal["high", "medium", "low"]

_CONFIDENCE_VALUES = ("high", "medium", "low")


def _coerce_confidence(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in _CONFIDENCE_VALUES:
        return value.strip().lower()
    return "medium"


def _coerce_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


class _RawModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class RawAssumption(_RawModel):
    text: str = ""
    confidence: ConfidenceValue = "medium"
    reasoning: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, v):
        return _coerce_confidence(v)


class RawUncertainty(_RawModel):
    question: str = ""
    priority: ConfidenceValue = "medium"
    suggested_contexts: List[str] = Field(default_factory=list, alias="suggestedContexts")

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v):
        return _coerce_confidence(v)

    @field_validator("suggested_contexts", mode="before")
    @classmethod
    def coerce_suggested_contexts(cls, v):
        return _coerce_str_list(v)


class RawSuggestedContext(_RawModel):
    title: str = ""
    description: str = ""
    reason: str = ""
    priority: ConfidenceValue = "medium"

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v):
        return _coerce_confidence(v)


def _items(value: Any, model: type, text_field: str) -> List[Any]:
    """Validate list items one by one; strings become ``{text_field: s}``."""
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, str):
            item = {text_field: item}
        if isinstance(item, model):
            items.append(item)
        elif isinstance(item, dict):
            try:
                items.append(model.model_validate(item))
            except ValueError:
                continue
    return items


class RawThinking(_RawModel):
    """Thinking block as emitted by the responder."""
    assumptions: List[RawAssumption] = Field(default_factory=list)
    uncertainties: List[RawUncertainty] = Field(default_factory=list)
    confidence_level: ConfidenceValue = Field(default="medium", alias="confidenceLevel")
    reasoning_steps: List[str] = Field(default_factory=list, alias="reasoningSteps")
    context_usage: List[Dict[str, Any]] = Field(default_factory=list, alias="contextUsage")
    suggested_contexts: List[RawSuggestedContext] = Field(default_factory=list, alias="suggestedContexts")

    @field_validator("assumptions", mode="before")
    @classmethod
    def coerce_assumptions(cls, v):
        return _items(v, RawAssumption, "text")

    @field_validator("uncertainties", mode="before")
    @classmethod
    def coerce_uncertainties(cls, v):
        return _items(v, RawUncertainty, "question")

    @field_validator("suggested_contexts", mode="before")
    @classmethod
    def coerce_suggested_contexts(cls, v):
        return _items(v, RawSuggestedContext, "title")

    @field_validator("confidence_level", mode="before")
    @classmethod
    def coerce_confidence_level(cls, v):
        return _coerce_confidence(v)

    @field_validator("reasoning_steps", mode="before")
    @classmethod
    def coerce_reasoning_steps(cls, v):
        if not isinstance(v, list):
            return []
        steps = []
        for item in v:
            if isinstance(item, str):
                steps.append(item)
            elif isinstance(item, dict):
                text = item.get("description") or item.get("text")
                if isinstance(text, str):
                    steps.append(text)
        return steps

    @field_validator("context_usage", mode="before")
    @classmethod
    def coerce_context_usage(cls, v):
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]


class StructuredResponse(_RawModel):
    """Successful responder output: reply text plus raw thinking."""
    response: str = ""
    thinking: RawThinking = Field(default_factory=RawThinking)

    @field_validator("response", mode="before")
    @classmethod
    def coerce_response(cls, v):
        return v if isinstance(v, str) else ""

    @field_validator("thinking", mode="before")
    @classmethod
    def coerce_thinking(cls, v):
        return v if isinstance(v, (dict, RawThinking)) else {}
