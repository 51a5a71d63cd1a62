"""REST API routes for chats, messages, tags and attached contexts."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from thinkchat.application.chat.service import ChatService
from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.errors import ChatNotFoundError, ContextNotFoundError, ValidationError
from thinkchat.domain.messages.models import Context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chats", tags=["chats"])


class CreateChatRequest(BaseModel):
    title: Optional[str] = None


class ContextModel(BaseModel):
    id: str
    title: str
    description: str = ""
    content: str = ""
    type: str = "knowledge"
    tags: List[str] = Field(default_factory=list)
    category: str = ""


class SendMessageRequest(BaseModel):
    content: str
    contexts: List[ContextModel] = Field(default_factory=list)


class TagRequest(BaseModel):
    name: str


class AttachContextsRequest(BaseModel):
    context_ids: List[str]


def get_chat_service(request: Request) -> ChatService:
    """The ChatService attached to the app at startup."""
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Chat service is not initialized")
    return service


def _require_chat(service: ChatService, chat_id: str) -> None:
    if not service.store.has_chat(chat_id):
        raise HTTPException(status_code=404, detail="Chat not found")


@router.get("")
async def list_chats(
    q: str = Query(default=""),
    tag: Optional[List[str]] = Query(default=None),
    service: ChatService = Depends(get_chat_service),
):
    """List chats, filtered by tags (all must match) and a search query."""
    chats = service.list_chats(query=q, tags=tag)
    return {"chats": [chat.to_dict() for chat in chats]}


@router.post("")
async def create_chat(
    body: CreateChatRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Create a chat and make it the active one."""
    chat = service.create_new_chat(body.title)
    return chat.to_dict()


@router.get("/state")
async def get_state(service: ChatService = Depends(get_chat_service)):
    """Read-only snapshot of the whole chat state."""
    return service.snapshot().to_dict()


@router.get("/tags")
async def list_known_tags(service: ChatService = Depends(get_chat_service)):
    """Known tags in registration order."""
    return {"tags": service.tags.known_tags, "selected": service.store.selected_tags}


@router.post("/tags")
async def add_known_tag(
    body: TagRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Register a tag without assigning it to a chat."""
    try:
        created = service.add_known_tag(body.name)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {"tags": service.tags.known_tags, "created": created}


@router.get("/{chat_id}/messages")
async def get_messages(
    chat_id: str,
    service: ChatService = Depends(get_chat_service),
):
    """A chat's messages in timeline order. Opening a chat loads its stored history."""
    _require_chat(service, chat_id)
    messages = await service.activate_chat(chat_id)
    return {"messages": [m.to_dict() for m in messages]}


@router.post("/{chat_id}/messages")
async def send_message(
    chat_id: str,
    body: SendMessageRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Run one user turn and return its outcome."""
    _require_chat(service, chat_id)
    await service.activate_chat(chat_id)
    contexts = [Context.from_dict(c.model_dump()) for c in body.contexts]
    try:
        turn = await service.send_message(chat_id, body.content, contexts)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return turn.to_dict()


@router.delete("/{chat_id}")
async def delete_chat(
    chat_id: str,
    service: ChatService = Depends(get_chat_service),
):
    """Delete a chat and its messages."""
    if not await service.delete_chat(chat_id):
        raise HTTPException(status_code=404, detail="Chat not found")
    logger.info("Chat %s deleted via API", sanitize_for_logging(chat_id))
    return {"deleted": True}


@router.post("/{chat_id}/tags")
async def add_tag(
    chat_id: str,
    body: TagRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Assign a tag to a chat."""
    try:
        tags = service.add_tag(chat_id, body.name)
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail="Chat not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {"tags": tags}


@router.delete("/{chat_id}/tags/{tag}")
async def remove_tag(
    chat_id: str,
    tag: str,
    service: ChatService = Depends(get_chat_service),
):
    """Unassign a tag from a chat."""
    try:
        tags = service.remove_tag(chat_id, tag)
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"tags": tags}


@router.post("/{chat_id}/contexts")
async def attach_contexts(
    chat_id: str,
    body: AttachContextsRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Attach library contexts to a chat; they are sent with every later turn."""
    try:
        context_ids = service.attach_contexts(chat_id, body.context_ids)
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail="Chat not found")
    except ContextNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {"context_ids": context_ids}


@router.delete("/{chat_id}/contexts/{context_id}")
async def detach_context(
    chat_id: str,
    context_id: str,
    service: ChatService = Depends(get_chat_service),
):
    """Detach a context from a chat."""
    try:
        context_ids = service.detach_context(chat_id, context_id)
    except ChatNotFoundError:
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"context_ids": context_ids}
