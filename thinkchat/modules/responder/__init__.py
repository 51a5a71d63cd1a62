"""HTTP client for the remote structured-response function."""

from .http_responder import HttpResponder

__all__ = ["HttpResponder"]
