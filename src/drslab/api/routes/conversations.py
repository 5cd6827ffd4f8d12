"""
Conversation API routes.

CRUD endpoints for chat conversations, scoped to the requesting user.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from drslab.api.auth import UserContext, get_user_context
from drslab.api.schemas import (
    ConversationCreate,
    ConversationResponse,
    ConversationUpdate,
    SuccessResponse,
)
from drslab.db.connection import get_db
from drslab.db.repositories import ConversationRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
) -> list[ConversationResponse]:
    """List the user's conversations, most recently updated first."""
    repo = ConversationRepository(session)
    return [ConversationResponse.model_validate(c) for c in repo.get_by_user(user.user_id)]


@router.post(
    "", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED
)
async def create_conversation(
    body: ConversationCreate,
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
) -> ConversationResponse:
    """Create a conversation bound to one AI model."""
    repo = ConversationRepository(session)
    conversation = repo.create(user_id=user.user_id, title=body.title, model=body.model)
    logger.info(f"Created conversation {conversation.id} ({body.model.value})")
    return ConversationResponse.model_validate(conversation)


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
) -> ConversationResponse:
    repo = ConversationRepository(session)
    conversation = repo.get_for_user(conversation_id, user.user_id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ConversationResponse.model_validate(conversation)


@router.patch("/{conversation_id}", response_model=ConversationResponse)
async def update_conversation(
    conversation_id: UUID,
    body: ConversationUpdate,
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
) -> ConversationResponse:
    """Partially update a conversation's title or model."""
    repo = ConversationRepository(session)
    if not repo.get_for_user(conversation_id, user.user_id):
        raise HTTPException(status_code=404, detail="Conversation not found")

    conversation = repo.update(conversation_id, **body.model_dump(exclude_unset=True))
    return ConversationResponse.model_validate(conversation)


@router.delete("/{conversation_id}", response_model=SuccessResponse)
async def delete_conversation(
    conversation_id: UUID,
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
) -> SuccessResponse:
    """Delete a conversation together with its messages."""
    repo = ConversationRepository(session)
    if not repo.get_for_user(conversation_id, user.user_id):
        raise HTTPException(status_code=404, detail="Conversation not found")

    repo.delete(conversation_id)
    logger.info(f"Deleted conversation {conversation_id}")
    return SuccessResponse(success=True)
