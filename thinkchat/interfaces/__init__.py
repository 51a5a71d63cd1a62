"""Ports consumed by the application layer."""

from .responder import ResponderProtocol
from .storage import StorageProtocol

__all__ = ["ResponderProtocol", "StorageProtocol"]
