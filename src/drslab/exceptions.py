"""Custom exceptions for Dr's Lab."""


class NotFoundError(Exception):
    """Raised when a record does not exist (or belongs to another user)."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class PathConflictError(Exception):
    """Raised when a studio path is taken by a file or a folder."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path already exists: {path}")


class NothingToCommitError(Exception):
    """Raised when a commit is requested with an empty staging area."""

    def __init__(self):
        super().__init__("nothing to commit, working tree clean")


class AIServiceError(Exception):
    """Raised when an LLM provider call fails or returns unusable output."""

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(message)
