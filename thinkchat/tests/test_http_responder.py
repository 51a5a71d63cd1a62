"""Tests for the HTTP responder client."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from thinkchat.domain.errors import (
    ResponderError,
    ResponderPayloadError,
    ResponderServiceError,
    ResponderTimeoutError,
)
from thinkchat.domain.messages.models import Context, Message, MessageRole, MessageStatus
from thinkchat.domain.thinking.schema import StructuredResponse
from thinkchat.modules.responder import HttpResponder


@pytest.fixture
def client():
    return HttpResponder(base_url="https://site.example.com/", timeout=5.0, api_key="test-token")


@pytest.fixture
def history():
    return [
        Message(
            id="m1",
            chat_id="chat-1",
            content="Hello",
            role=MessageRole.USER,
            timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            status=MessageStatus.DELIVERED,
        )
    ]


def _mock_client(mock_client, response=None, side_effect=None):
    mock_instance = AsyncMock()
    if side_effect is not None:
        mock_instance.post.side_effect = side_effect
    else:
        mock_instance.post.return_value = response
    mock_instance.__aenter__.return_value = mock_instance
    mock_instance.__aexit__.return_value = None
    mock_client.return_value = mock_instance
    return mock_instance


def _json_response(payload):
    mock_response = MagicMock()
    mock_response.json.return_value = payload
    mock_response.raise_for_status = MagicMock()
    return mock_response


class TestRequest:
    @pytest.mark.asyncio
    async def test_posts_messages_and_contexts(self, client, history):
        contexts = [Context(id="ctx-1", title="Docs", description="d", content="c", tags=["a"], category="ref")]

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_client(mock_client, _json_response({"response": "hi", "thinking": {}}))
            await client.get_structured_response(history, contexts)

        call_args = mock_instance.post.call_args
        assert call_args[0][0] == "https://site.example.com/.netlify/functions/anthropic-chat"
        assert call_args[1]["headers"]["Authorization"] == "Bearer test-token"
        payload = call_args[1]["json"]
        assert payload["messages"] == [{
            "id": "m1",
            "chatId": "chat-1",
            "content": "Hello",
            "type": "user",
            "timestamp": "2024-05-01T12:00:00+00:00",
            "status": "delivered",
        }]
        assert payload["contexts"] == [{
            "id": "ctx-1",
            "title": "Docs",
            "description": "d",
            "content": "c",
            "type": "knowledge",
            "tags": ["a"],
            "category": "ref",
        }]
        mock_client.assert_called_once_with(timeout=5.0)

    def test_no_auth_header_without_key(self):
        responder = HttpResponder(base_url="https://site.example.com", path="fn")
        assert "Authorization" not in responder._get_headers()
        assert responder.url == "https://site.example.com/fn"


class TestResponse:
    @pytest.mark.asyncio
    async def test_success_returns_structured_response(self, client, history):
        payload = {
            "response": "Answer",
            "thinking": {"confidenceLevel": "high", "reasoningSteps": ["a", "b"]},
        }
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, _json_response(payload))
            result = await client.get_structured_response(history)

        assert isinstance(result, StructuredResponse)
        assert result.response == "Answer"
        assert result.thinking.confidence_level == "high"
        assert result.thinking.reasoning_steps == ["a", "b"]

    @pytest.mark.asyncio
    async def test_error_field_raises(self, client, history):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, _json_response({"error": "Anthropic API key missing"}))
            with pytest.raises(ResponderServiceError) as exc:
                await client.get_structured_response(history)
        assert "API key missing" in exc.value.message

    @pytest.mark.asyncio
    async def test_http_status_error(self, client, history):
        mock_response = MagicMock()
        mock_response.status_code = 500
        mock_response.text = "Internal Server Error"
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Error", request=MagicMock(), response=mock_response
        )

        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, mock_response)
            with pytest.raises(ResponderServiceError) as exc:
                await client.get_structured_response(history)
        assert exc.value.message == "HTTP error! status: 500"

    @pytest.mark.asyncio
    async def test_request_error(self, client, history):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, side_effect=httpx.RequestError("Connection failed", request=MagicMock()))
            with pytest.raises(ResponderServiceError):
                await client.get_structured_response(history)

    @pytest.mark.asyncio
    async def test_timeout(self, client, history):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, side_effect=httpx.ReadTimeout("timed out"))
            with pytest.raises(ResponderTimeoutError):
                await client.get_structured_response(history)

    @pytest.mark.asyncio
    async def test_unparseable_body(self, client, history):
        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock()
        mock_response.json.side_effect = ValueError("Expecting value")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, mock_response)
            with pytest.raises(ResponderPayloadError):
                await client.get_structured_response(history)

    @pytest.mark.asyncio
    async def test_non_object_payload(self, client, history):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, _json_response(["not", "an", "object"]))
            with pytest.raises(ResponderError):
                await client.get_structured_response(history)

    @pytest.mark.asyncio
    async def test_invalid_url_is_a_responder_error(self, client, history):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, side_effect=httpx.InvalidURL("Invalid non-printable ASCII character in URL"))
            with pytest.raises(ResponderServiceError):
                await client.get_structured_response(history)
