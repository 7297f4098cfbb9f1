"""Resolve the user of a request.

Authentication happens in front of the backend; the user id arrives in the
header named by Config.USER_ID_HEADER and must exist in the database.
"""

import logging

from flask import request
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from backend.conf.config import Config
from backend.src.api.middleware.exceptions import ForbiddenError, UnauthorizedError
from backend.src.database import SessionFactory, User

logger = logging.getLogger(__name__)


def get_current_user(session_factory: SessionFactory) -> User:
    """Load the user of the current request.

    Raises:
        UnauthorizedError: If the header is missing or the user is unknown
    """
    user_id = request.headers.get(Config.USER_ID_HEADER, "").strip()
    if not user_id:
        raise UnauthorizedError(message=f"Missing {Config.USER_ID_HEADER} header")

    with session_factory() as session:
        user = session.scalar(
            select(User).options(selectinload(User.user_group)).where(User.id == user_id)
        )

    if user is None:
        logger.warning(f"Request for unknown user '{user_id}'")
        raise UnauthorizedError(message="Unknown user")
    return user


def require_admin(session_factory: SessionFactory) -> User:
    """Load the user of the current request and check it is an administrator."""
    user = get_current_user(session_factory)
    if not user.is_admin:
        raise ForbiddenError(message="Administrator permissions required")
    return user
