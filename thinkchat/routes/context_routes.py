"""REST API routes for the context library."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from thinkchat.application.chat.service import ChatService
from thinkchat.core.log_sanitizer import sanitize_for_logging
from thinkchat.domain.errors import ContextNotFoundError, ValidationError

from .chat_routes import get_chat_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contexts", tags=["contexts"])


class CreateContextRequest(BaseModel):
    title: str
    description: str = ""
    content: str = ""
    type: str = "knowledge"
    tags: List[str] = Field(default_factory=list)
    category: str = ""


class UpdateContextRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    type: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None


@router.get("")
async def list_contexts(
    q: str = Query(default=""),
    service: ChatService = Depends(get_chat_service),
):
    """Library contexts, optionally filtered by a search query."""
    return {"contexts": [c.to_dict() for c in service.search_contexts(q)]}


@router.post("")
async def create_context(
    body: CreateContextRequest,
    service: ChatService = Depends(get_chat_service),
):
    try:
        context = service.add_context(**body.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return context.to_dict()


@router.patch("/{context_id}")
async def update_context(
    context_id: str,
    body: UpdateContextRequest,
    service: ChatService = Depends(get_chat_service),
):
    """Change the fields present in the body."""
    try:
        context = service.update_context(context_id, **body.model_dump(exclude_none=True))
    except ContextNotFoundError:
        raise HTTPException(status_code=404, detail="Context not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return context.to_dict()


@router.delete("/{context_id}")
async def delete_context(
    context_id: str,
    service: ChatService = Depends(get_chat_service),
):
    """Delete a context and detach it from every chat."""
    if not service.delete_context(context_id):
        raise HTTPException(status_code=404, detail="Context not found")
    logger.info("Context %s deleted via API", sanitize_for_logging(context_id))
    return {"deleted": True}
