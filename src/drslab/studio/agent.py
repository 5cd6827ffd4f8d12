"""
Agent command tokens.

In agent mode the Studio assistant embeds actions in its reply as
``[COMMAND:ACTION:JSON_PAYLOAD]`` tokens, for example::

    [COMMAND:CREATE_FILE:{"path": "src/App.js", "content": "..."}] Created App.js.

This module extracts those tokens and applies them to a workspace.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from drslab.exceptions import NothingToCommitError, PathConflictError
from drslab.studio.git import GitSimulator
from drslab.studio.terminal import Terminal

logger = logging.getLogger(__name__)

_TOKEN_START = re.compile(r"\[COMMAND:([A-Za-z_]+):")
_decoder = json.JSONDecoder()

CREATE_FILE = "CREATE_FILE"
WRITE_FILE = "WRITE_FILE"
RUN_TERMINAL = "RUN_TERMINAL"
COMMIT = "COMMIT"

KNOWN_ACTIONS = (CREATE_FILE, WRITE_FILE, RUN_TERMINAL, COMMIT)


@dataclass
class AgentCommand:
    """One parsed command token."""

    action: str
    payload: dict[str, Any]
    raw: str = ""


@dataclass
class AgentResult:
    """Outcome of applying one command."""

    action: str
    status: str  # applied, skipped or failed
    detail: str = ""
    payload: dict[str, Any] = field(default_factory=dict)


def parse_agent_commands(text: str) -> tuple[list[AgentCommand], str]:
    """
    Extract command tokens from an assistant reply.

    The JSON payload is decoded with ``raw_decode`` so that "]" characters
    inside strings do not end the token early. Tokens with a payload that is
    not a JSON object are dropped from the text and skipped.

    Returns:
        Tuple of (commands in order of appearance, text with tokens removed)
    """
    commands: list[AgentCommand] = []
    kept: list[str] = []
    pos = 0

    while True:
        match = _TOKEN_START.search(text, pos)
        if match is None:
            break
        kept.append(text[pos:match.start()])
        action = match.group(1)

        payload, end = _decode_payload(text, match.end())
        if end is None:
            close = text.find("]", match.end())
            end = len(text) if close == -1 else close + 1
            logger.warning(f"Skipping malformed agent command: {text[match.start():end]!r}")
        elif not isinstance(payload, dict):
            logger.warning(f"Skipping {action} command with non-object payload")
        else:
            commands.append(AgentCommand(action, payload, text[match.start():end]))
        pos = end

    kept.append(text[pos:])
    return commands, "".join(kept).strip()


def _decode_payload(text: str, start: int) -> tuple[Any, Optional[int]]:
    """Decode the JSON after ``[COMMAND:ACTION:``; returns (payload, end) or (None, None)."""
    try:
        payload, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError:
        return None, None
    while end < len(text) and text[end].isspace():
        end += 1
    if end >= len(text) or text[end] != "]":
        return None, None
    return payload, end + 1


def validate_command(command: AgentCommand) -> Optional[str]:
    """Return a reason the command cannot be applied, or None when it is valid."""
    payload = command.payload
    if command.action not in KNOWN_ACTIONS:
        return f"unknown action {command.action}"
    if command.action in (CREATE_FILE, WRITE_FILE):
        if not payload.get("path") or not isinstance(payload.get("content"), str):
            return "payload requires 'path' and string 'content'"
    elif command.action == RUN_TERMINAL:
        if not payload.get("command"):
            return "payload requires 'command'"
    elif command.action == COMMIT:
        if not payload.get("message"):
            return "payload requires 'message'"
    return None


class AgentExecutor:
    """Applies agent commands to a workspace through its terminal."""

    def __init__(self, terminal: Terminal):
        self.terminal = terminal
        self.workspace = terminal.workspace
        self.git: GitSimulator = terminal.git

    def apply(self, commands: list[AgentCommand]) -> list[AgentResult]:
        """Apply commands in order; invalid ones are skipped, never raised."""
        results = []
        for command in commands:
            reason = validate_command(command)
            if reason is not None:
                logger.warning(f"Skipping agent command {command.action}: {reason}")
                results.append(
                    AgentResult(command.action, "skipped", reason, command.payload)
                )
                continue
            results.append(self._apply_one(command))
        return results

    def _apply_one(self, command: AgentCommand) -> AgentResult:
        payload = command.payload
        try:
            if command.action in (CREATE_FILE, WRITE_FILE):
                studio_file = self.workspace.write(
                    payload["path"], payload["content"], payload.get("language")
                )
                detail = studio_file.path
            elif command.action == RUN_TERMINAL:
                record = self.terminal.execute(payload["command"])
                detail = record.output or ""
                if record.exit_code:
                    return AgentResult(command.action, "failed", detail, payload)
            else:
                if payload.get("stageAll"):
                    self.git.stage_all()
                commit = self.git.commit(payload["message"])
                detail = f"{len(commit.paths)} file(s) committed"
        except (ValueError, NothingToCommitError, PathConflictError) as e:
            logger.warning(f"Agent command {command.action} failed: {e}")
            return AgentResult(command.action, "failed", str(e), payload)

        logger.info(f"Applied agent command {command.action}: {detail[:80]}")
        return AgentResult(command.action, "applied", detail, payload)
