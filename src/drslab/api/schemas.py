"""
API schemas for Dr's Lab.

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from drslab.models.db import MessageRole, ModelSelector

# ===== Conversations =====


class ConversationCreate(BaseModel):
    """Request body for creating a conversation."""

    title: str = Field(min_length=1)
    model: ModelSelector


class ConversationUpdate(BaseModel):
    """Partial update of a conversation."""

    title: Optional[str] = Field(default=None, min_length=1)
    model: Optional[ModelSelector] = None


class ConversationResponse(BaseModel):
    """Response schema for Conversation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[str] = None
    title: str
    model: ModelSelector
    created_at: datetime
    updated_at: datetime


class SuccessResponse(BaseModel):
    success: bool = True


# ===== Messages =====


class MessageCreate(BaseModel):
    """A user message to send to a conversation."""

    conversation_id: UUID
    role: MessageRole = MessageRole.USER
    content: str = Field(min_length=1)


class MessageResponse(BaseModel):
    """Response schema for Message."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    role: MessageRole
    content: str
    sequence: int
    created_at: datetime


class MessageExchange(BaseModel):
    """The stored user message together with the assistant's reply."""

    user_message: MessageResponse
    assistant_message: MessageResponse


# ===== Studio files =====


class StudioFileCreate(BaseModel):
    path: str = Field(min_length=1)
    content: str = ""
    language: Optional[str] = None


class StudioFileUpdate(BaseModel):
    path: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None
    language: Optional[str] = None


class StudioFileResponse(BaseModel):
    """Response schema for StudioFile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[str] = None
    path: str
    content: str
    language: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FileMoveRequest(BaseModel):
    old_path: str = Field(min_length=1)
    new_path: str = Field(min_length=1)


class FileTreeNode(BaseModel):
    """A node of the nested file tree; files have no children."""

    name: str
    path: str
    type: Literal["file", "folder"]
    children: Optional[list["FileTreeNode"]] = None


# ===== Git =====


class GitStatusResponse(BaseModel):
    changes: dict[str, str] = Field(default_factory=dict)
    staged: list[str] = Field(default_factory=list)
    remote_url: Optional[str] = None
    initialized: bool = False


class StageRequest(BaseModel):
    """Stage or unstage one path, or everything with ``all``."""

    path: Optional[str] = None
    all: bool = False


class CommitRequest(BaseModel):
    message: str = Field(min_length=1)
    stage_all: bool = False


class CommitResponse(BaseModel):
    """Response schema for Commit."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    message: str
    paths: list[str]
    created_at: datetime


class DiffLine(BaseModel):
    type: Literal["add", "del", "same"]
    line: str


class DiffResponse(BaseModel):
    path: str
    lines: list[DiffLine]


# ===== Terminal =====


class TerminalCommandRequest(BaseModel):
    command: str = Field(min_length=1)


class TerminalCommandResponse(BaseModel):
    """Response schema for TerminalCommand."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    command: str
    output: Optional[str] = None
    exit_code: Optional[int] = None
    created_at: datetime
    cwd: Optional[str] = None


# ===== Studio AI =====


class ChatTurn(BaseModel):
    role: str
    content: str


class AssistContext(BaseModel):
    """Studio assistant context sent by the IDE."""

    model_config = ConfigDict(populate_by_name=True)

    mode: Literal["assistant", "agent"] = "assistant"
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    files: list[str] = Field(default_factory=list)


class AssistRequest(BaseModel):
    messages: list[ChatTurn] = Field(min_length=1)
    context: AssistContext = Field(default_factory=AssistContext)


class AgentActionResponse(BaseModel):
    action: str
    status: str
    detail: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


class AssistResponse(BaseModel):
    response: str
    actions: list[AgentActionResponse] = Field(default_factory=list)


class ProjectRequest(BaseModel):
    prompt: str = Field(min_length=1)


class NextStepResponse(BaseModel):
    text: str
    priority: str


class ProjectResponse(BaseModel):
    """A generated project after it replaced the workspace."""

    project_name: str
    explanation: str
    next_steps: list[NextStepResponse] = Field(default_factory=list)
    files: list[StudioFileResponse] = Field(default_factory=list)


# ===== Code AI =====


class GenerateCodeRequest(BaseModel):
    description: str = Field(min_length=1)
    model: ModelSelector = ModelSelector.MILESAI


class GenerateCodeResponse(BaseModel):
    code: str


class AnalyzeCodeRequest(BaseModel):
    code: str = Field(min_length=1)
    model: ModelSelector = ModelSelector.MILESAI


class AnalyzeCodeResponse(BaseModel):
    analysis: str
