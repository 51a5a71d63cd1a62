"""HTTP client for the remote structured-response function.

Request:  POST {base_url}{path}  ``{"messages": [...], "contexts": [...]}``
Response: ``{"response": str, "thinking": {...}}`` or ``{"error": str}``
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from thinkchat.application.chat.utilities import error_handler
from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.errors import ResponderPayloadError, ResponderServiceError
from thinkchat.domain.messages.models import Context, Message
from thinkchat.domain.thinking.schema import StructuredResponse

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/.netlify/functions/anthropic-chat"


class HttpResponder:
    """Client for the structured AI responder.

    Every failure surfaces as a ``ResponderError`` subclass so the
    orchestrator can switch to the fallback reply.
    """

    def __init__(
        self,
        base_url: str,
        path: str = DEFAULT_PATH,
        timeout: float = 60.0,
        api_key: Optional[str] = None,
    ):
        """Initialize the responder client.

        Args:
            base_url: Base URL of the site hosting the function.
            path: Function path appended to ``base_url``.
            timeout: Request timeout in seconds.
            api_key: Optional bearer token.
        """
        self.base_url = base_url.rstrip("/")
        self.path = path if path.startswith("/") else f"/{path}"
        self.timeout = timeout
        self.api_key = api_key

        logger.info("HttpResponder initialized: url=%s, timeout=%.1fs", self.url, self.timeout)

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}"

    def _get_headers(self) -> Dict[str, str]:
        """Build HTTP headers for API requests."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def build_payload(messages: List[Message], contexts: Sequence[Context] = ()) -> Dict[str, Any]:
        return {
            "messages": [m.to_responder_dict() for m in messages],
            "contexts": [c.to_responder_dict() for c in contexts],
        }

    async def get_structured_response(
        self,
        messages: List[Message],
        contexts: Sequence[Context] = (),
    ) -> StructuredResponse:
        """POST the history and contexts, returning the validated reply."""
        payload = self.build_payload(messages, contexts)
        logger.debug("Requesting structured response: messages=%d, contexts=%d", len(messages), len(contexts))

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.url, headers=self._get_headers(), json=payload)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "Responder HTTP error: %s (status %d)",
                    sanitize_for_logging(exc.response.text[:500]),
                    exc.response.status_code,
                )
                raise ResponderServiceError(
                    f"HTTP error! status: {exc.response.status_code}",
                    code="RESPONDER_HTTP_ERROR",
                ) from exc
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
                raise error_handler.to_responder_error(exc) from exc

        if not isinstance(data, dict):
            raise ResponderPayloadError("Responder returned a non-object payload", code="RESPONDER_PAYLOAD")
        if data.get("error"):
            logger.warning("Responder reported an error: %s", sanitize_for_logging(data["error"]))
            raise ResponderServiceError(str(data["error"]), code="RESPONDER_ERROR_FIELD")

        try:
            result = StructuredResponse.model_validate(data)
        except PydanticValidationError as exc:
            raise ResponderPayloadError(f"Invalid responder payload: {exc.error_count()} errors") from exc

        logger.info(
            "Responder returned %d chars, %d assumptions, %d uncertainties",
            len(result.response),
            len(result.thinking.assumptions),
            len(result.thinking.uncertainties),
        )
        return result
