"""Message and chat id generation.

Ids are produced by an explicit generator instead of being derived from the
wall clock, so two messages created in the same tick never collide.
"""

import itertools
import uuid
from typing import Protocol


class IdGenerator(Protocol):
    """Port for unique id generation."""

    def new_id(self) -> str:
        """Return a new id, unique for the lifetime of the generator."""
        ...


class UuidIdGenerator:
    """Random UUID4 ids (default)."""

    def new_id(self) -> str:
        return str(uuid.uuid4())


class SequentialIdGenerator:
    """Monotonic ``<prefix><n>`` ids. Deterministic; handy for tests and replays."""

    def __init__(self, prefix: str = "", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def new_id(self) -> str:
        return f"{self.prefix}{next(self._counter)}"
