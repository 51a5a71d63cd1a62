"""Infrastructure layer - external adapters and wiring."""

from .app_factory import AppFactory
from .storage.in_memory_storage import InMemoryStorage

__all__ = [
    "AppFactory",
    "InMemoryStorage",
]
