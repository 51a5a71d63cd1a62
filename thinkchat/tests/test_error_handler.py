"""Tests for responder error classification."""

from unittest.mock import MagicMock

import httpx

from thinkchat.application.chat.utilities.error_handler import (
    classify_responder_error,
    format_turn_error,
    is_responder_failure,
    to_responder_error,
)
from thinkchat.domain.errors import (
    ResponderPayloadError,
    ResponderServiceError,
    ResponderTimeoutError,
    ValidationError,
)


class TestIsResponderFailure:
    def test_responder_and_transport_errors(self):
        assert is_responder_failure(ResponderServiceError("down"))
        assert is_responder_failure(httpx.ConnectError("refused"))
        assert is_responder_failure(TimeoutError())
        assert is_responder_failure(ConnectionResetError())
        assert is_responder_failure(httpx.InvalidURL("bad url"))

    def test_other_errors_are_not(self):
        assert not is_responder_failure(RuntimeError("bug"))
        assert not is_responder_failure(KeyError("x"))
        assert not is_responder_failure(ValidationError("bad input"))


class TestClassifyResponderError:
    def test_timeout(self):
        error_class, user_msg, log_msg = classify_responder_error(httpx.ReadTimeout("read timed out"))
        assert error_class is ResponderTimeoutError
        assert "timed out" in user_msg
        assert "timeout" in log_msg.lower()

    def test_http_status(self):
        response = MagicMock()
        response.status_code = 503
        response.text = "Service Unavailable"
        error = httpx.HTTPStatusError("Error", request=MagicMock(), response=response)

        error_class, user_msg, log_msg = classify_responder_error(error)

        assert error_class is ResponderServiceError
        assert "503" in log_msg
        assert "Service Unavailable" not in user_msg

    def test_decoding(self):
        error_class, _, _ = classify_responder_error(ValueError("Expecting value: line 1"))
        assert error_class is ResponderPayloadError

    def test_transport_fallthrough(self):
        error_class, user_msg, log_msg = classify_responder_error(httpx.ConnectError("refused"))
        assert error_class is ResponderServiceError
        assert "could not be reached" in user_msg
        assert "ConnectError" in log_msg

    def test_user_message_hides_details(self):
        _, user_msg, _ = classify_responder_error(httpx.ConnectError("secret-host:9999 refused"))
        assert "secret-host" not in user_msg


class TestConversions:
    def test_to_responder_error_wraps(self):
        wrapped = to_responder_error(httpx.ConnectTimeout("timed out"))
        assert isinstance(wrapped, ResponderTimeoutError)
        assert wrapped.code == "ResponderTimeoutError"

    def test_to_responder_error_passthrough(self):
        original = ResponderServiceError("down")
        assert to_responder_error(original) is original

    def test_format_turn_error(self):
        assert format_turn_error(RuntimeError("kaboom")) == "Error: kaboom"
        assert format_turn_error(RuntimeError("  ")) == "Error: Failed to get AI response"
