"""
SQLAlchemy database models for Dr's Lab.

These models represent the records kept by the chat and Studio backends:
conversations and their messages, studio files, terminal history, and the
simulated git state of each user's workspace.
"""

import enum
import uuid
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Timezone-aware current time used for all timestamps."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class ModelSelector(str, enum.Enum):
    """AI model a conversation is bound to."""

    GEMINI = "gemini"  # Empathetic therapy companion
    MILESAI = "milesai"  # Development assistant (OpenAI-compatible)


class MessageRole(str, enum.Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class Conversation(Base):
    """A titled chat thread bound to one AI model."""

    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    model: Mapped[ModelSelector] = mapped_column(
        Enum(
            ModelSelector,
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    messages: Mapped[list["Message"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.sequence",
    )

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, title={self.title!r}, model={self.model})>"


class Message(Base):
    """Individual message within a conversation."""

    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[MessageRole] = mapped_column(
        Enum(
            MessageRole,
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    conversation: Mapped["Conversation"] = relationship(back_populates="messages")

    __table_args__ = (
        Index("idx_messages_conversation_sequence", "conversation_id", "sequence"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, role={self.role}, sequence={self.sequence})>"


class StudioFile(Base):
    """A file in a user's Studio workspace."""

    __tablename__ = "studio_files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    language: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (UniqueConstraint("user_id", "path", name="uq_studio_file_path"),)

    def __repr__(self) -> str:
        return f"<StudioFile(id={self.id}, path={self.path!r})>"


class TerminalCommand(Base):
    """A command entered in the simulated terminal and its captured output."""

    __tablename__ = "terminal_commands"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    command: Mapped[str] = mapped_column(Text, nullable=False)
    output: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    exit_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<TerminalCommand(id={self.id}, command={self.command!r})>"


class WorkspaceState(Base):
    """
    Per-user Studio state that is not a file.

    Holds the terminal's working directory and the simulated git layer: the
    committed snapshot (``base``, path -> content), the staged paths and the
    configured remote.
    """

    __tablename__ = "workspace_states"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    cwd: Mapped[str] = mapped_column(Text, nullable=False, default="/")
    git_initialized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    remote_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    base: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    staged: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<WorkspaceState(user_id={self.user_id!r}, cwd={self.cwd!r})>"


class Commit(Base):
    """A simulated git commit in a user's workspace."""

    __tablename__ = "commits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    paths: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Commit(id={self.id}, message={self.message!r})>"
