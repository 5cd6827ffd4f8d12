"""
Message repository.
"""

import uuid
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from drslab.db.repositories.base import BaseRepository
from drslab.db.repositories.conversation import ConversationRepository
from drslab.models.db import Message, MessageRole


class MessageRepository(BaseRepository[Message]):
    """Repository for Message model."""

    def __init__(self, session: Session):
        super().__init__(Message, session)

    def get_by_conversation(self, conversation_id: uuid.UUID) -> List[Message]:
        """
        Get all messages in a conversation, oldest first.

        Args:
            conversation_id: Conversation UUID

        Returns:
            List of messages ordered by sequence
        """
        return (
            self.session.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.sequence.asc(), Message.created_at.asc())
            .all()
        )

    def next_sequence(self, conversation_id: uuid.UUID) -> int:
        """Return the sequence number the next message should get."""
        current = (
            self.session.query(func.max(Message.sequence))
            .filter(Message.conversation_id == conversation_id)
            .scalar()
        )
        return 0 if current is None else current + 1

    def append(
        self, conversation_id: uuid.UUID, role: MessageRole | str, content: str
    ) -> Message:
        """
        Append a message to a conversation and bump the conversation's updated_at.

        Args:
            conversation_id: Conversation UUID
            role: "user" or "assistant"
            content: Message text

        Returns:
            Created message
        """
        message = self.create(
            conversation_id=conversation_id,
            role=MessageRole(role),
            content=content,
            sequence=self.next_sequence(conversation_id),
        )
        ConversationRepository(self.session).touch(conversation_id)
        return message

    def history(self, conversation_id: uuid.UUID) -> list[dict[str, str]]:
        """Conversation history in the role/content shape LLM providers take."""
        return [
            {"role": message.role.value, "content": message.content}
            for message in self.get_by_conversation(conversation_id)
        ]
