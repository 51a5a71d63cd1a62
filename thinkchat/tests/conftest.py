"""Shared fixtures for thinkchat tests."""

from unittest.mock import AsyncMock

import pytest

from thinkchat.application.chat.persistence import WriteBehind
from thinkchat.application.chat.store import ChatStore, new_chat
from thinkchat.core.ids import SequentialIdGenerator
from thinkchat.domain.thinking.schema import StructuredResponse
from thinkchat.infrastructure.storage.in_memory_storage import InMemoryStorage


def make_response(text="Here is my answer.", **thinking):
    """Build a validated responder reply; ``thinking`` uses wire (camelCase) keys."""
    return StructuredResponse.model_validate({"response": text, "thinking": thinking})


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def write_behind(storage):
    return WriteBehind(storage)


@pytest.fixture
def store(write_behind):
    return ChatStore(write_behind=write_behind, known_tags=["Work", "Personal"])


@pytest.fixture
def ids():
    return SequentialIdGenerator(prefix="id-")


@pytest.fixture
def chat(store):
    return store.add_chat(new_chat("chat-1", "First chat"))


@pytest.fixture
def responder():
    mock = AsyncMock()
    mock.get_structured_response.return_value = make_response(
        "Here is my answer.",
        assumptions=[{"text": "User wants a summary", "confidence": "high"}],
        uncertainties=[{"question": "Which format?", "priority": "low", "suggestedContexts": ["Style guide"]}],
        confidenceLevel="high",
        reasoningSteps=["Read the question", "Recall facts", "Draft answer"],
        suggestedContexts=[{"title": "Docs", "description": "Project docs"}],
    )
    return mock
