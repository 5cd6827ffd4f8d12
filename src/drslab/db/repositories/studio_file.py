"""
Studio file repository.
"""

from typing import Any, List, Optional

from sqlalchemy.orm import Session

from drslab.db.repositories.base import BaseRepository
from drslab.models.db import StudioFile, utcnow


class StudioFileRepository(BaseRepository[StudioFile]):
    """Repository for StudioFile model."""

    def __init__(self, session: Session):
        super().__init__(StudioFile, session)

    def get_by_user(self, user_id: str) -> List[StudioFile]:
        """
        Get all files in a user's workspace, sorted by path.

        Args:
            user_id: Owning user id

        Returns:
            List of studio files
        """
        return (
            self.session.query(StudioFile)
            .filter(StudioFile.user_id == user_id)
            .order_by(StudioFile.path.asc())
            .all()
        )

    def get_by_path(self, user_id: str, path: str) -> Optional[StudioFile]:
        """Get a file by its workspace path."""
        return (
            self.session.query(StudioFile)
            .filter(StudioFile.user_id == user_id, StudioFile.path == path)
            .first()
        )

    def get_under(self, user_id: str, prefix: str) -> List[StudioFile]:
        """Get every file below a folder prefix (``prefix/...``)."""
        folder = prefix.rstrip("/") + "/"
        return [f for f in self.get_by_user(user_id) if f.path.startswith(folder)]

    def contents(self, user_id: str) -> dict[str, str]:
        """Map of path -> content for a user's workspace."""
        return {f.path: f.content for f in self.get_by_user(user_id)}

    def update(self, id: Any, **kwargs: Any) -> Optional[StudioFile]:
        """Patch a file; updated_at is always bumped."""
        kwargs.pop("created_at", None)
        kwargs.pop("user_id", None)
        kwargs["updated_at"] = utcnow()
        return super().update(id, **kwargs)

    def upsert(
        self,
        user_id: str,
        path: str,
        content: str,
        language: Optional[str] = None,
    ) -> StudioFile:
        """
        Create a file or overwrite the content of an existing one.

        The existing language tag is kept when none is given.

        Args:
            user_id: Owning user id
            path: Normalised workspace path
            content: New file content
            language: Optional language tag

        Returns:
            The created or updated file
        """
        existing = self.get_by_path(user_id, path)
        if existing is None:
            return self.create(
                user_id=user_id, path=path, content=content, language=language
            )

        fields: dict[str, Any] = {"content": content}
        if language:
            fields["language"] = language
        return self.update(existing.id, **fields)

    def delete_by_path(self, user_id: str, path: str) -> bool:
        """Delete a single file by path."""
        existing = self.get_by_path(user_id, path)
        if existing is None:
            return False
        self.session.delete(existing)
        self.session.flush()
        return True

    def delete_prefix(self, user_id: str, prefix: str) -> int:
        """
        Delete every file below a folder.

        Returns:
            Number of files deleted
        """
        files = self.get_under(user_id, prefix)
        for studio_file in files:
            self.session.delete(studio_file)
        self.session.flush()
        return len(files)

    def delete_all(self, user_id: str) -> int:
        """Delete a user's whole workspace."""
        deleted = (
            self.session.query(StudioFile)
            .filter(StudioFile.user_id == user_id)
            .delete(synchronize_session="fetch")
        )
        self.session.flush()
        return deleted

    def move(self, user_id: str, old_path: str, new_path: str) -> List[StudioFile]:
        """
        Rename a file, or a folder together with everything below it.

        Args:
            user_id: Owning user id
            old_path: Current file path or folder prefix
            new_path: Target path

        Returns:
            The moved files (empty when nothing matched)
        """
        moved = []
        single = self.get_by_path(user_id, old_path)
        if single is not None:
            single.path = new_path
            single.updated_at = utcnow()
            moved.append(single)
        else:
            old_folder = old_path.rstrip("/") + "/"
            new_folder = new_path.rstrip("/") + "/"
            for studio_file in self.get_under(user_id, old_path):
                studio_file.path = new_folder + studio_file.path[len(old_folder):]
                studio_file.updated_at = utcnow()
                moved.append(studio_file)
        self.session.flush()
        return moved
