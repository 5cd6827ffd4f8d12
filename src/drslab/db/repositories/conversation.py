"""
Conversation repository.
"""

import uuid
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from drslab.db.repositories.base import BaseRepository
from drslab.models.db import Conversation, utcnow


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for Conversation model."""

    def __init__(self, session: Session):
        super().__init__(Conversation, session)

    def get_by_user(self, user_id: str) -> List[Conversation]:
        """
        Get all conversations owned by a user, most recently updated first.

        Args:
            user_id: Owning user id

        Returns:
            List of conversations
        """
        return (
            self.session.query(Conversation)
            .filter(Conversation.user_id == user_id)
            .order_by(Conversation.updated_at.desc(), Conversation.created_at.desc())
            .all()
        )

    def get_for_user(self, id: uuid.UUID, user_id: str) -> Optional[Conversation]:
        """
        Get a conversation only if it belongs to the given user.

        Args:
            id: Conversation UUID
            user_id: Owning user id

        Returns:
            Conversation or None
        """
        return (
            self.session.query(Conversation)
            .filter(Conversation.id == id, Conversation.user_id == user_id)
            .first()
        )

    def update(self, id: Any, **kwargs: Any) -> Optional[Conversation]:
        """
        Patch a conversation; updated_at is always bumped, even for empty patches.

        Args:
            id: Conversation UUID
            **kwargs: Fields to update (title, model)

        Returns:
            Updated conversation or None if not found
        """
        kwargs.pop("created_at", None)
        kwargs["updated_at"] = utcnow()
        return super().update(id, **kwargs)

    def touch(self, id: uuid.UUID) -> None:
        """Bump a conversation's updated_at (no-op when it does not exist)."""
        conversation = self.get(id)
        if conversation is not None:
            conversation.updated_at = utcnow()
            self.session.flush()
