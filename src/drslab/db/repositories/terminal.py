"""
Terminal history and workspace state repositories.
"""

from typing import List

from sqlalchemy.orm import Session

from drslab.db.repositories.base import BaseRepository
from drslab.models.db import Commit, TerminalCommand, WorkspaceState


class TerminalCommandRepository(BaseRepository[TerminalCommand]):
    """Repository for TerminalCommand model."""

    def __init__(self, session: Session):
        super().__init__(TerminalCommand, session)

    def get_recent(self, user_id: str, limit: int = 50) -> List[TerminalCommand]:
        """
        Get a user's most recent commands, newest first.

        Args:
            user_id: Owning user id
            limit: Maximum number of commands to return

        Returns:
            List of terminal commands
        """
        return (
            self.session.query(TerminalCommand)
            .filter(TerminalCommand.user_id == user_id)
            .order_by(TerminalCommand.created_at.desc())
            .limit(limit)
            .all()
        )

    def clear(self, user_id: str) -> int:
        """Delete a user's terminal history, returning the number of rows removed."""
        deleted = (
            self.session.query(TerminalCommand)
            .filter(TerminalCommand.user_id == user_id)
            .delete(synchronize_session="fetch")
        )
        self.session.flush()
        return deleted


class WorkspaceStateRepository(BaseRepository[WorkspaceState]):
    """Repository for WorkspaceState model."""

    def __init__(self, session: Session):
        super().__init__(WorkspaceState, session)

    def get_or_create(self, user_id: str) -> WorkspaceState:
        """Get a user's workspace state, creating a fresh one on first use."""
        state = self.get(user_id)
        if state is None:
            state = self.create(
                user_id=user_id, cwd="/", git_initialized=False, base={}, staged=[]
            )
        return state


class CommitRepository(BaseRepository[Commit]):
    """Repository for Commit model."""

    def __init__(self, session: Session):
        super().__init__(Commit, session)

    def get_by_user(self, user_id: str, limit: int = 50) -> List[Commit]:
        """Get a user's commits, newest first."""
        return (
            self.session.query(Commit)
            .filter(Commit.user_id == user_id)
            .order_by(Commit.created_at.desc())
            .limit(limit)
            .all()
        )
