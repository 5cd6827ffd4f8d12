"""
Message API routes.

Sending a message stores it, asks the conversation's AI model with the full
history and stores the reply. The streaming variant sends the reply as
Server-Sent Events.
"""

import json
import logging
from typing import Iterator
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from drslab.ai.service import AIService, get_ai_service
from drslab.api.auth import UserContext, get_user_context
from drslab.api.schemas import MessageCreate, MessageExchange, MessageResponse
from drslab.db.connection import get_db
from drslab.db.repositories import ConversationRepository, MessageRepository
from drslab.exceptions import AIServiceError
from drslab.models.db import Conversation, MessageRole

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_conversation(session: Session, conversation_id: UUID, user_id: str) -> Conversation:
    conversation = ConversationRepository(session).get_for_user(conversation_id, user_id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@router.get("/{conversation_id}", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: UUID,
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
) -> list[MessageResponse]:
    """Get a conversation's messages in order."""
    _get_conversation(session, conversation_id, user.user_id)
    messages = MessageRepository(session).get_by_conversation(conversation_id)
    return [MessageResponse.model_validate(m) for m in messages]


@router.post("", response_model=MessageExchange)
def send_message(
    body: MessageCreate,
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
) -> MessageExchange:
    """
    Store a user message and the AI reply.

    The user message is committed before the model is called, so it is kept
    when the provider fails (502).
    """
    conversation = _get_conversation(session, body.conversation_id, user.user_id)
    repo = MessageRepository(session)

    user_message = repo.append(conversation.id, body.role, body.content)
    session.commit()

    try:
        reply = ai.respond(conversation.model, repo.history(conversation.id))
    except AIServiceError as e:
        logger.error(f"AI reply failed for conversation {conversation.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    assistant_message = repo.append(conversation.id, MessageRole.ASSISTANT, reply)
    return MessageExchange(
        user_message=MessageResponse.model_validate(user_message),
        assistant_message=MessageResponse.model_validate(assistant_message),
    )


@router.post("/stream")
def stream_message(
    body: MessageCreate,
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
) -> StreamingResponse:
    """
    Store a user message and stream the AI reply as Server-Sent Events.

    Frames are ``data: {"response": chunk}``; the last frame is
    ``data: {"done": true, "message": {...}}`` carrying the stored reply, or
    ``data: {"error": "..."}`` when the provider fails.
    """
    conversation = _get_conversation(session, body.conversation_id, user.user_id)
    repo = MessageRepository(session)
    repo.append(conversation.id, body.role, body.content)
    session.commit()

    conversation_id = conversation.id
    model = conversation.model
    history = repo.history(conversation_id)

    def event_stream() -> Iterator[str]:
        chunks: list[str] = []
        try:
            for chunk in ai.stream_response(model, history):
                chunks.append(chunk)
                yield _sse({"response": chunk})
        except AIServiceError as e:
            logger.error(f"Streaming failed for conversation {conversation_id}: {e}")
            yield _sse({"error": str(e)})
            return

        content = "".join(chunks)
        if not content:
            content = ai.fallback_reply(model)
            yield _sse({"response": content})

        message = repo.append(conversation_id, MessageRole.ASSISTANT, content)
        session.commit()
        payload = MessageResponse.model_validate(message).model_dump(mode="json")
        yield _sse({"done": True, "message": payload})

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
