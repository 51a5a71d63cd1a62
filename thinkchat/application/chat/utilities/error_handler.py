"""
Error handling utilities - pure functions for exception handling patterns.

Decides which failures of an AI turn are responder failures (handled by the
fallback reply) and which are unclassified (surfaced as a system message).
"""

import asyncio
import logging
from typing import Tuple

import httpx

from thinkchat.domain.errors import (
    ResponderError,
    ResponderPayloadError,
    ResponderServiceError,
    ResponderTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_TURN_ERROR = "Failed to get AI response"

_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError, TimeoutError, ConnectionError)


def is_responder_failure(error: BaseException) -> bool:
    """True for errors that should trigger the fallback reply."""
    return isinstance(error, (ResponderError, *_TRANSPORT_ERRORS))


def classify_responder_error(error: Exception) -> Tuple[type, str, str]:
    """
    Classify responder errors and return error type, user message and log message.

    Returns:
        Tuple of (error_class, user_message, log_message).

    NOTE: user_message MUST NOT contain raw exception details.
    """
    if isinstance(error, ResponderError):
        return (type(error), "The AI service is currently unavailable.", f"Responder error: {error}")

    error_str = str(error)

    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)) or "timed out" in error_str.lower():
        user_msg = "The AI service request timed out."
        log_msg = f"Responder timeout: {error_str}"
        return (ResponderTimeoutError, user_msg, log_msg)

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        user_msg = "The AI service returned an error."
        log_msg = f"Responder HTTP {status}: {error.response.text[:500]}"
        return (ResponderServiceError, user_msg, log_msg)

    if isinstance(error, httpx.DecodingError) or isinstance(error, ValueError):
        user_msg = "The AI service returned an unreadable response."
        log_msg = f"Responder payload error: {error_str}"
        return (ResponderPayloadError, user_msg, log_msg)

    user_msg = "The AI service could not be reached."
    log_msg = f"Responder transport error: {type(error).__name__}: {error_str}"
    return (ResponderServiceError, user_msg, log_msg)


def to_responder_error(error: Exception) -> ResponderError:
    """Wrap a transport-level exception into the matching ResponderError."""
    if isinstance(error, ResponderError):
        return error
    error_class, user_msg, log_msg = classify_responder_error(error)
    logger.warning(log_msg)
    return error_class(user_msg, code=error_class.__name__)


def format_turn_error(error: BaseException) -> str:
    """Content of the system message shown for an unclassified turn failure."""
    reason = str(error).strip() or DEFAULT_TURN_ERROR
    return f"Error: {reason}"
