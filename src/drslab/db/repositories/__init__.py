"""
Repository layer for database operations.

Provides a clean API for CRUD operations on database models.
"""

from drslab.db.repositories.base import BaseRepository
from drslab.db.repositories.conversation import ConversationRepository
from drslab.db.repositories.message import MessageRepository
from drslab.db.repositories.studio_file import StudioFileRepository
from drslab.db.repositories.terminal import (
    CommitRepository,
    TerminalCommandRepository,
    WorkspaceStateRepository,
)

__all__ = [
    "BaseRepository",
    "CommitRepository",
    "ConversationRepository",
    "MessageRepository",
    "StudioFileRepository",
    "TerminalCommandRepository",
    "WorkspaceStateRepository",
]
