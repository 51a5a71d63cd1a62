"""
Helpers for logging user-controlled values safely.
"""

import re
from typing import Any

_CONTROL_CHARS_RE = re.compile(r'[\x00-\x1f\x7f-\x9f]')
# Matches Unicode line separators (LINE SEPARATOR and PARAGRAPH SEPARATOR)
_UNICODE_NEWLINES_RE = re.compile(r'[\u2028\u2029]')
_STANDARD_NEWLINES_RE = re.compile(r'(\r\n|\r|\n)')


def sanitize_for_logging(value: Any) -> str:
    """
    Sanitize a value for safe logging by removing newlines and control characters.

    Chat ids, tags and message content all come from the user, so anything
    interpolated into a log line goes through here first.

    Examples:
        >>> sanitize_for_logging("Hello\\nWorld")
        'HelloWorld'
        >>> sanitize_for_logging("Test\\x1b[31mRed\\x1b[0m")
        'Test[31mRed[0m'
        >>> sanitize_for_logging(None)
        ''
    """
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)
    value = _CONTROL_CHARS_RE.sub('', value)
    value = _UNICODE_NEWLINES_RE.sub('', value)
    value = _STANDARD_NEWLINES_RE.sub('', value)
    return value


_previews_enabled = False


def set_preview_logging(enabled: bool) -> None:
    """Allow message content previews in DEBUG logs (off by default)."""
    global _previews_enabled
    _previews_enabled = bool(enabled)


def preview(content: str, limit: int = 50) -> str:
    """Short sanitized preview of message content for DEBUG logs.

    Only the length is shown unless previews were enabled.
    """
    if not _previews_enabled:
        return f"<{len(content or '')} chars>"
    text = sanitize_for_logging(content)
    return text[:limit] + "..." if len(text) > limit else text
