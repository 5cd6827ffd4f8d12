"""
A user's Studio workspace.

Bundles the file store and the per-user workspace state behind path-based
operations. The terminal, the git simulation, the agent executor and the
studio routes all go through this class.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from drslab.db.repositories import (
    CommitRepository,
    StudioFileRepository,
    WorkspaceStateRepository,
)
from drslab.exceptions import NotFoundError, PathConflictError
from drslab.models.db import StudioFile, WorkspaceState
from drslab.studio.paths import (
    detect_language,
    is_directory,
    normalize_path,
    path_conflict,
)

logger = logging.getLogger(__name__)


class Workspace:
    """File and state operations for one user's workspace."""

    def __init__(self, session: Session, user_id: str):
        self.session = session
        self.user_id = user_id
        self.files = StudioFileRepository(session)
        self.states = WorkspaceStateRepository(session)
        self.commits = CommitRepository(session)
        self._state: Optional[WorkspaceState] = None

    @property
    def state(self) -> WorkspaceState:
        """The user's workspace state, created on first access."""
        if self._state is None:
            self._state = self.states.get_or_create(self.user_id)
        return self._state

    # Reads

    def list_files(self) -> list[StudioFile]:
        return self.files.get_by_user(self.user_id)

    def paths(self) -> list[str]:
        return [f.path for f in self.list_files()]

    def snapshot(self) -> dict[str, str]:
        """Current working contents (path -> content)."""
        return self.files.contents(self.user_id)

    def get(self, path: str) -> Optional[StudioFile]:
        return self.files.get_by_path(self.user_id, normalize_path(path))

    def read(self, path: str) -> Optional[str]:
        studio_file = self.get(path)
        return studio_file.content if studio_file else None

    def is_dir(self, path: str) -> bool:
        return is_directory(self.paths(), normalize_path(path))

    # Writes

    def create(
        self, path: str, content: str = "", language: Optional[str] = None
    ) -> StudioFile:
        """
        Create a new file.

        Raises:
            ValueError: If the path is empty after normalisation
            PathConflictError: If the path is taken by a file or a folder, or
                a parent folder on it is a file
        """
        normalized = self._require_path(path)
        self._check_free(normalized)
        return self.files.create(
            user_id=self.user_id,
            path=normalized,
            content=content,
            language=language or detect_language(normalized),
        )

    def write(
        self, path: str, content: str, language: Optional[str] = None
    ) -> StudioFile:
        """
        Create or overwrite a file.

        Raises:
            PathConflictError: If the path is a folder or runs through a file
        """
        normalized = self._require_path(path)
        self._check_placement(normalized)
        existing = self.files.get_by_path(self.user_id, normalized)
        if existing is None:
            language = language or detect_language(normalized)
        return self.files.upsert(self.user_id, normalized, content, language)

    def update(self, file_id, **fields) -> StudioFile:
        """
        Patch a file by id (path, content, language).

        Raises:
            NotFoundError: If the file does not exist in this workspace
            PathConflictError: If the new path is taken by another file
        """
        studio_file = self.files.get(file_id)
        if studio_file is None or studio_file.user_id != self.user_id:
            raise NotFoundError("File", file_id)

        for key in ("path", "content"):
            if fields.get(key) is None:
                fields.pop(key, None)

        if "path" in fields:
            new_path = self._require_path(fields["path"])
            if new_path != studio_file.path:
                self._check_free(new_path)
                self._rename_tracking(studio_file.path, new_path)
            fields["path"] = new_path

        return self.files.update(studio_file.id, **fields)

    def delete(self, path: str) -> bool:
        """Delete one file; staging for it is dropped."""
        normalized = normalize_path(path)
        deleted = self.files.delete_by_path(self.user_id, normalized)
        if deleted:
            self._drop_staged(lambda p: p == normalized)
        return deleted

    def delete_by_id(self, file_id) -> StudioFile:
        """
        Delete a file by id.

        Raises:
            NotFoundError: If the file does not exist in this workspace
        """
        studio_file = self.files.get(file_id)
        if studio_file is None or studio_file.user_id != self.user_id:
            raise NotFoundError("File", file_id)
        self.delete(studio_file.path)
        return studio_file

    def delete_folder(self, path: str) -> int:
        """Delete every file below a folder; returns how many were removed."""
        folder = normalize_path(path)
        count = self.files.delete_prefix(self.user_id, folder)
        if count:
            self._drop_staged(lambda p: p.startswith(folder + "/"))
        return count

    def move(self, old_path: str, new_path: str) -> list[StudioFile]:
        """
        Rename a file or folder; git base and staging follow the rename.

        Raises:
            ValueError: If either path is empty
            NotFoundError: If nothing exists at old_path
            PathConflictError: If new_path is already taken
        """
        old = self._require_path(old_path)
        new = self._require_path(new_path)
        if old == new:
            return [f for f in [self.get(old)] if f is not None]

        if self.get(old) is None and not self.is_dir(old):
            raise NotFoundError("Path", old)
        self._check_free(new)

        moved = self.files.move(self.user_id, old, new)
        self._rename_tracking(old, new)
        logger.info(f"Moved {len(moved)} file(s) from {old} to {new}")
        return moved

    def replace_all(self, files: list[tuple[str, str, Optional[str]]]) -> list[StudioFile]:
        """
        Replace the whole workspace with a new set of files.

        The new files also become the committed git base and staging is
        cleared, as after a clone. Every path is checked before anything is
        deleted.

        Raises:
            ValueError: If a path is empty after normalisation
            PathConflictError: If two of the new paths collide as file and folder
        """
        new_paths = [self._require_path(path) for path, _, _ in files]
        for path in new_paths:
            conflict = path_conflict(new_paths, path)
            if conflict is not None:
                raise PathConflictError(conflict)

        self.files.delete_all(self.user_id)
        created = [self.write(path, content, language) for path, content, language in files]
        state = self.state
        state.base = {f.path: f.content for f in created}
        state.staged = []
        self.session.flush()
        return created

    # Internals

    def _require_path(self, path: str) -> str:
        normalized = normalize_path(path)
        if not normalized:
            raise ValueError(f"Invalid path: {path!r}")
        return normalized

    def _check_free(self, path: str) -> None:
        if self.get(path) is not None:
            raise PathConflictError(path)
        self._check_placement(path)

    def _check_placement(self, path: str) -> None:
        conflict = path_conflict(self.paths(), path)
        if conflict is not None:
            raise PathConflictError(conflict)

    def _drop_staged(self, predicate) -> None:
        state = self.state
        remaining = [p for p in state.staged if not predicate(p)]
        if remaining != state.staged:
            state.staged = remaining
            self.session.flush()

    def _rename_tracking(self, old: str, new: str) -> None:
        """Apply a rename to the git base snapshot and the staged paths."""

        def rename(p: str) -> str:
            if p == old:
                return new
            if p.startswith(old + "/"):
                return new + p[len(old):]
            return p

        state = self.state
        state.base = {rename(p): content for p, content in state.base.items()}
        state.staged = [rename(p) for p in state.staged]
        self.session.flush()
