"""
Request user context for API endpoints.

There is no login: the owning user is taken from the optional X-User-Id
header and falls back to the configured demo user. Every repository query is
scoped by this id.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from drslab.config import settings


@dataclass
class UserContext:
    """
    User context for API requests.

    Example:
        >>> @router.get("/conversations")
        >>> def list_conversations(
        ...     user: UserContext = Depends(get_user_context),
        ...     session: Session = Depends(get_db),
        ... ):
        ...     return ConversationRepository(session).get_by_user(user.user_id)
    """

    user_id: str


def get_user_context(
    x_user_id: Optional[str] = Header(
        None,
        description="Owning user id (defaults to the demo user)",
        alias="X-User-Id",
    ),
) -> UserContext:
    """FastAPI dependency resolving the owning user of a request."""
    user_id = (x_user_id or "").strip() or settings.default_user_id
    return UserContext(user_id=user_id)
