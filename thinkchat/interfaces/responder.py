"""AI responder interface."""

from typing import List, Protocol, Sequence, runtime_checkable

from thinkchat.domain.messages.models import Context, Message
from thinkchat.domain.thinking.schema import StructuredResponse


@runtime_checkable
class ResponderProtocol(Protocol):
    """Protocol for the remote structured AI responder."""

    async def get_structured_response(
        self,
        messages: List[Message],
        contexts: Sequence[Context] = (),
    ) -> StructuredResponse:
        """
        Request a reply for the given history.

        Raises:
            ResponderError: on transport failure, non-success status or an
                explicit error field in the payload.
        """
        ...
