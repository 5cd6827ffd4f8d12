"""
Studio API routes.

Workspace files, the file tree, simulated git, the simulated terminal and the
Studio AI assistant.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from drslab.ai.prompts import STUDIO_AGENT_PROMPT, STUDIO_ASSISTANT_PROMPT
from drslab.ai.service import AIService, get_ai_service
from drslab.api.auth import UserContext, get_user_context
from drslab.api.schemas import (
    AgentActionResponse,
    AssistRequest,
    AssistResponse,
    CommitRequest,
    CommitResponse,
    DiffResponse,
    FileMoveRequest,
    FileTreeNode,
    GitStatusResponse,
    NextStepResponse,
    ProjectRequest,
    ProjectResponse,
    StageRequest,
    StudioFileCreate,
    StudioFileResponse,
    StudioFileUpdate,
    SuccessResponse,
    TerminalCommandRequest,
    TerminalCommandResponse,
)
from drslab.config import settings
from drslab.db.connection import get_db
from drslab.exceptions import (
    AIServiceError,
    NotFoundError,
    NothingToCommitError,
    PathConflictError,
)
from drslab.studio.agent import AgentExecutor, parse_agent_commands
from drslab.studio.git import GitSimulator
from drslab.studio.paths import build_file_tree, normalize_path
from drslab.studio.terminal import Terminal
from drslab.studio.workspace import Workspace

logger = logging.getLogger(__name__)

router = APIRouter()


def get_workspace(
    user: UserContext = Depends(get_user_context),
    session: Session = Depends(get_db),
) -> Workspace:
    """FastAPI dependency returning the requesting user's workspace."""
    return Workspace(session, user.user_id)


def _terminal(workspace: Workspace, ai: AIService) -> Terminal:
    return Terminal(workspace, ai, ai_simulation=settings.terminal_ai_simulation)


# ===== Files =====


@router.get("/files", response_model=list[StudioFileResponse])
async def list_files(
    workspace: Workspace = Depends(get_workspace),
) -> list[StudioFileResponse]:
    """List workspace files sorted by path."""
    return [StudioFileResponse.model_validate(f) for f in workspace.list_files()]


@router.get("/tree", response_model=list[FileTreeNode])
async def get_tree(workspace: Workspace = Depends(get_workspace)) -> list[FileTreeNode]:
    """Nested file tree, folders first."""
    return [FileTreeNode.model_validate(node) for node in build_file_tree(workspace.paths())]


@router.post(
    "/files", response_model=StudioFileResponse, status_code=status.HTTP_201_CREATED
)
async def create_file(
    body: StudioFileCreate,
    workspace: Workspace = Depends(get_workspace),
) -> StudioFileResponse:
    try:
        studio_file = workspace.create(body.path, body.content, body.language)
    except PathConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return StudioFileResponse.model_validate(studio_file)


@router.post("/files/move", response_model=list[StudioFileResponse])
async def move_file(
    body: FileMoveRequest,
    workspace: Workspace = Depends(get_workspace),
) -> list[StudioFileResponse]:
    """Rename a file or a folder."""
    try:
        moved = workspace.move(body.old_path, body.new_path)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PathConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [StudioFileResponse.model_validate(f) for f in moved]


@router.get("/files/{file_id}", response_model=StudioFileResponse)
async def get_file(
    file_id: UUID,
    workspace: Workspace = Depends(get_workspace),
) -> StudioFileResponse:
    studio_file = workspace.files.get(file_id)
    if not studio_file or studio_file.user_id != workspace.user_id:
        raise HTTPException(status_code=404, detail="File not found")
    return StudioFileResponse.model_validate(studio_file)


@router.patch("/files/{file_id}", response_model=StudioFileResponse)
async def update_file(
    file_id: UUID,
    body: StudioFileUpdate,
    workspace: Workspace = Depends(get_workspace),
) -> StudioFileResponse:
    """Partially update a file's path, content or language."""
    try:
        studio_file = workspace.update(file_id, **body.model_dump(exclude_unset=True))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except PathConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return StudioFileResponse.model_validate(studio_file)


@router.delete("/files/{file_id}", response_model=SuccessResponse)
async def delete_file(
    file_id: UUID,
    workspace: Workspace = Depends(get_workspace),
) -> SuccessResponse:
    try:
        workspace.delete_by_id(file_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    return SuccessResponse(success=True)


# ===== Git =====


def _status(git: GitSimulator) -> GitStatusResponse:
    return GitStatusResponse(
        changes=git.changes(),
        staged=git.staged,
        remote_url=git.remote_url,
        initialized=git.initialized,
    )


@router.get("/git/status", response_model=GitStatusResponse)
async def git_status(workspace: Workspace = Depends(get_workspace)) -> GitStatusResponse:
    """Working tree changes against the last commit, plus staged paths."""
    return _status(GitSimulator(workspace))


@router.post("/git/stage", response_model=GitStatusResponse)
async def git_stage(
    body: StageRequest,
    workspace: Workspace = Depends(get_workspace),
) -> GitStatusResponse:
    git = GitSimulator(workspace)
    if body.all:
        git.stage_all()
    elif body.path:
        try:
            git.stage(body.path)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
    else:
        raise HTTPException(status_code=400, detail="Either 'path' or 'all' is required")
    return _status(git)


@router.post("/git/unstage", response_model=GitStatusResponse)
async def git_unstage(
    body: StageRequest,
    workspace: Workspace = Depends(get_workspace),
) -> GitStatusResponse:
    git = GitSimulator(workspace)
    if body.all:
        git.unstage_all()
    elif body.path:
        git.unstage(body.path)
    else:
        raise HTTPException(status_code=400, detail="Either 'path' or 'all' is required")
    return _status(git)


@router.post(
    "/git/commit", response_model=CommitResponse, status_code=status.HTTP_201_CREATED
)
async def git_commit(
    body: CommitRequest,
    workspace: Workspace = Depends(get_workspace),
) -> CommitResponse:
    """Commit staged paths (optionally staging every change first)."""
    git = GitSimulator(workspace)
    if body.stage_all:
        git.stage_all()
    try:
        commit = git.commit(body.message)
    except NothingToCommitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CommitResponse.model_validate(commit)


@router.get("/git/diff", response_model=DiffResponse)
async def git_diff(
    path: str = Query(..., min_length=1, description="Workspace file path"),
    workspace: Workspace = Depends(get_workspace),
) -> DiffResponse:
    """Line diff between the committed and working content of a file."""
    return DiffResponse(path=normalize_path(path), lines=GitSimulator(workspace).diff(path))


@router.get("/git/log", response_model=list[CommitResponse])
async def git_log(workspace: Workspace = Depends(get_workspace)) -> list[CommitResponse]:
    return [CommitResponse.model_validate(c) for c in GitSimulator(workspace).log()]


# ===== Terminal =====


@router.get("/terminal", response_model=list[TerminalCommandResponse])
async def terminal_history(
    workspace: Workspace = Depends(get_workspace),
) -> list[TerminalCommandResponse]:
    """Most recent terminal commands, newest first."""
    commands = Terminal(workspace).history.get_recent(
        workspace.user_id, limit=settings.terminal_history_limit
    )
    return [TerminalCommandResponse.model_validate(c) for c in commands]


@router.post(
    "/terminal",
    response_model=TerminalCommandResponse,
    status_code=status.HTTP_201_CREATED,
)
def run_terminal_command(
    body: TerminalCommandRequest,
    workspace: Workspace = Depends(get_workspace),
    ai: AIService = Depends(get_ai_service),
) -> TerminalCommandResponse:
    """Execute a command in the simulated terminal and record it."""
    terminal = _terminal(workspace, ai)
    record = terminal.execute(body.command)
    response = TerminalCommandResponse.model_validate(record)
    response.cwd = terminal.cwd
    return response


# ===== Studio AI =====


@router.post("/ai-assist", response_model=AssistResponse)
def ai_assist(
    body: AssistRequest,
    workspace: Workspace = Depends(get_workspace),
    ai: AIService = Depends(get_ai_service),
) -> AssistResponse:
    """
    Studio pair programmer.

    In agent mode the reply's command tokens are applied to the workspace and
    removed from the returned text.
    """
    context = body.context
    agent_mode = context.mode == "agent"
    system_prompt = context.system_prompt or (
        STUDIO_AGENT_PROMPT if agent_mode else STUDIO_ASSISTANT_PROMPT
    )
    files = context.files or workspace.paths()
    if files:
        system_prompt += f"\n\nCurrent project files: {', '.join(files)}"

    history = [
        {"role": "assistant" if m.role in ("assistant", "model") else "user", "content": m.content}
        for m in body.messages
    ]
    try:
        reply = ai.generate_dev_response(history, system_prompt=system_prompt)
    except AIServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    if not agent_mode:
        return AssistResponse(response=reply)

    commands, display = parse_agent_commands(reply)
    results = AgentExecutor(_terminal(workspace, ai)).apply(commands)
    return AssistResponse(
        response=display,
        actions=[
            AgentActionResponse(
                action=r.action, status=r.status, detail=r.detail, payload=r.payload
            )
            for r in results
        ],
    )


@router.post("/generate-project", response_model=ProjectResponse)
def generate_project(
    body: ProjectRequest,
    workspace: Workspace = Depends(get_workspace),
    ai: AIService = Depends(get_ai_service),
) -> ProjectResponse:
    """Generate a project with the AI and replace the workspace with it."""
    try:
        project = ai.generate_project(body.prompt, workspace.paths())
    except AIServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    try:
        created = workspace.replace_all(
            [(f.path, f.content, f.language) for f in project.files]
        )
    except (ValueError, PathConflictError) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    logger.info(f"Generated project {project.project_name!r} with {len(created)} files")
    return ProjectResponse(
        project_name=project.project_name,
        explanation=project.explanation,
        next_steps=[NextStepResponse(text=s.text, priority=s.priority) for s in project.next_steps],
        files=[StudioFileResponse.model_validate(f) for f in created],
    )
