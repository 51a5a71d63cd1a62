"""Tests for domain errors module."""

import pytest

from thinkchat.domain.errors import (
    ChatError,
    ChatNotFoundError,
    ConfigurationError,
    DomainError,
    MessageError,
    ResponderError,
    ResponderPayloadError,
    ResponderServiceError,
    ResponderTimeoutError,
    StorageError,
    ValidationError,
)


class TestDomainError:
    """Test suite for DomainError base class."""

    def test_domain_error_with_message_only(self):
        error = DomainError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code is None

    def test_domain_error_with_message_and_code(self):
        error = DomainError("Something went wrong", "ERR_001")
        assert error.code == "ERR_001"

    @pytest.mark.parametrize("cls", [
        ValidationError,
        ChatError,
        ChatNotFoundError,
        MessageError,
        ConfigurationError,
        StorageError,
        ResponderError,
        ResponderTimeoutError,
        ResponderServiceError,
        ResponderPayloadError,
    ])
    def test_subclasses_are_domain_errors(self, cls):
        error = cls("boom", code="X")
        assert isinstance(error, DomainError)
        assert error.message == "boom"
        assert error.code == "X"

    def test_chat_not_found_is_chat_error(self):
        assert issubclass(ChatNotFoundError, ChatError)

    @pytest.mark.parametrize("cls", [ResponderTimeoutError, ResponderServiceError, ResponderPayloadError])
    def test_responder_hierarchy(self, cls):
        with pytest.raises(ResponderError):
            raise cls("failed")
