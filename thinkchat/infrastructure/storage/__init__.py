"""Storage adapters."""

from .in_memory_storage import InMemoryStorage

__all__ = ["InMemoryStorage"]
