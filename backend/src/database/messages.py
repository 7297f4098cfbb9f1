"""Queries for threaded messages."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.src.database.models import Message


def get_latest_message(session: Session, conversation_id: int) -> Optional[Message]:
    """Return the most recent message of a conversation, if any."""
    return session.scalars(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.id.desc())
        .limit(1)
    ).first()


def get_message_thread(
    session: Session, conversation_id: int, message_id: Optional[int]
) -> List[Message]:
    """Walk the parent links from a message up to the root of its thread.

    Args:
        session: Database session
        conversation_id: Conversation the thread must belong to
        message_id: Last message of the thread, None for an empty thread

    Returns:
        Messages ordered from the root to message_id. Links leaving the
        conversation end the thread.
    """
    thread: List[Message] = []
    visited = set()
    current_id = message_id

    while current_id is not None and current_id not in visited:
        visited.add(current_id)
        message = session.get(Message, current_id)
        if message is None or message.conversation_id != conversation_id:
            break
        thread.append(message)
        current_id = message.parent_id

    thread.reverse()
    return thread
