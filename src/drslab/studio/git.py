"""
Simulated git for the Studio workspace.

There is no object store: the committed state is a single snapshot
(``WorkspaceState.base``, path -> content) and the index is the list of
staged paths. Changes are computed by comparing the working files with that
snapshot.
"""

import difflib
import logging
from typing import Optional

from drslab.exceptions import NotFoundError, NothingToCommitError
from drslab.models.db import Commit
from drslab.studio.paths import normalize_path
from drslab.studio.workspace import Workspace

logger = logging.getLogger(__name__)

UNTRACKED = "untracked"
MODIFIED = "modified"
DELETED = "deleted"

BRANCH = "main"


class GitSimulator:
    """Git operations over one user's workspace."""

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    @property
    def state(self):
        return self.workspace.state

    @property
    def staged(self) -> list[str]:
        return list(self.state.staged)

    @property
    def remote_url(self) -> Optional[str]:
        return self.state.remote_url

    @property
    def initialized(self) -> bool:
        return self.state.git_initialized

    def changes(self) -> dict[str, str]:
        """
        Working tree changes against the committed snapshot.

        Returns:
            Mapping of path -> "untracked" | "modified" | "deleted", sorted by path
        """
        working = self.workspace.snapshot()
        base = self.state.base
        result: dict[str, str] = {}
        for path in sorted(set(working) | set(base)):
            if path not in base:
                result[path] = UNTRACKED
            elif path not in working:
                result[path] = DELETED
            elif working[path] != base[path]:
                result[path] = MODIFIED
        return result

    def stage(self, path: str) -> list[str]:
        """
        Add a path to the staging area.

        Raises:
            NotFoundError: If the path is neither a file nor a committed path
        """
        normalized = normalize_path(path)
        if self.workspace.get(normalized) is None and normalized not in self.state.base:
            raise NotFoundError("Path", normalized)
        if normalized not in self.state.staged:
            self._set_staged(self.state.staged + [normalized])
        return self.staged

    def unstage(self, path: str) -> list[str]:
        normalized = normalize_path(path)
        self._set_staged([p for p in self.state.staged if p != normalized])
        return self.staged

    def stage_all(self) -> list[str]:
        """Stage every changed path."""
        merged = list(self.state.staged)
        for path in self.changes():
            if path not in merged:
                merged.append(path)
        self._set_staged(merged)
        return self.staged

    def unstage_all(self) -> list[str]:
        self._set_staged([])
        return self.staged

    def commit(self, message: str) -> Commit:
        """
        Record the staged paths into the committed snapshot.

        Staged files that no longer exist are removed from the snapshot.

        Raises:
            NothingToCommitError: If nothing is staged
        """
        staged = self.staged
        if not staged:
            raise NothingToCommitError()

        working = self.workspace.snapshot()
        base = dict(self.state.base)
        for path in staged:
            if path in working:
                base[path] = working[path]
            else:
                base.pop(path, None)

        state = self.state
        state.base = base
        state.staged = []
        commit = self.workspace.commits.create(
            user_id=self.workspace.user_id, message=message, paths=staged
        )
        logger.info(f"Committed {len(staged)} path(s) for {self.workspace.user_id}")
        return commit

    def init(self) -> None:
        """Snapshot the current files as the committed state."""
        state = self.state
        state.base = self.workspace.snapshot()
        state.staged = []
        state.git_initialized = True
        self.workspace.session.flush()

    def set_remote(self, url: str) -> None:
        self.state.remote_url = url
        self.workspace.session.flush()

    def diff(self, path: str) -> list[dict[str, str]]:
        """
        Line diff between committed and working content of a file.

        Returns:
            List of ``{"type": "add" | "del" | "same", "line": text}``
        """
        normalized = normalize_path(path)
        old = self.state.base.get(normalized, "")
        new = self.workspace.read(normalized) or ""

        lines = []
        for entry in difflib.ndiff(old.splitlines(), new.splitlines()):
            marker, text = entry[:2], entry[2:]
            if marker == "  ":
                lines.append({"type": "same", "line": text})
            elif marker == "- ":
                lines.append({"type": "del", "line": text})
            elif marker == "+ ":
                lines.append({"type": "add", "line": text})
        return lines

    def log(self, limit: int = 50) -> list[Commit]:
        return self.workspace.commits.get_by_user(self.workspace.user_id, limit=limit)

    def status_text(self) -> str:
        """Human readable ``git status`` output."""
        changes = self.changes()
        staged = set(self.state.staged)
        lines = [f"On branch {BRANCH}"]

        to_commit = [p for p in changes if p in staged]
        not_staged = [p for p in changes if p not in staged and changes[p] != UNTRACKED]
        untracked = [p for p in changes if p not in staged and changes[p] == UNTRACKED]

        if not changes:
            lines.append("nothing to commit, working tree clean")
            return "\n".join(lines)

        if to_commit:
            lines.append("Changes to be committed:")
            lines.extend(f"  {_label(changes[p])}{p}" for p in to_commit)
        if not_staged:
            lines.append("Changes not staged for commit:")
            lines.extend(f"  {_label(changes[p])}{p}" for p in not_staged)
        if untracked:
            lines.append("Untracked files:")
            lines.extend(f"  {p}" for p in untracked)
        return "\n".join(lines)

    def _set_staged(self, paths: list[str]) -> None:
        self.state.staged = paths
        self.workspace.session.flush()


def _label(change: str) -> str:
    return {UNTRACKED: "new file:   ", MODIFIED: "modified:   ", DELETED: "deleted:    "}[change]
