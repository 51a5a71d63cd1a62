"""
thinkchat - chat timeline core with AI responder orchestration.

Keeps the per-chat message timeline, drives AI turns against a remote
structured responder, and attaches normalized "thinking" records to the
resulting AI messages.

Example usage:
    from thinkchat import AppFactory

    factory = AppFactory()
    service = factory.create_chat_service()
    chat = service.create_new_chat("Planning")
    result = await service.send_message(chat.id, "Hello")
    print(result.ai_message.content)

CLI tools (after pip install):
    thinkchat-chat "Your prompt here" --title "Planning"
    thinkchat-server --port 8000
"""

from thinkchat.version import VERSION

__version__ = VERSION
__all__ = [
    "AppFactory",
    "ChatService",
    "VERSION",
    "__version__",
]


def __getattr__(name: str):
    """Lazy import to avoid loading heavy dependencies at module import time."""
    if name == "AppFactory":
        from thinkchat.infrastructure.app_factory import AppFactory
        globals()["AppFactory"] = AppFactory
        return AppFactory
    if name == "ChatService":
        from thinkchat.application.chat.service import ChatService
        globals()["ChatService"] = ChatService
        return ChatService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
