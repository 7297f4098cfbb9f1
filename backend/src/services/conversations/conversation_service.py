"""Service for conversations of a user and their threaded messages."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from backend.src.api.middleware.exceptions import BadRequestError, NotFoundError
from backend.src.database import (
    Conversation,
    Message,
    SessionFactory,
    User,
    get_latest_message,
    get_message_thread,
)
from backend.src.services.extensions.extension_service import ExtensionService

logger = logging.getLogger(__name__)

MESSAGE_RATINGS = ("good", "bad", "unrated")


def conversation_to_json(conversation: Conversation) -> Dict[str, Any]:
    return {
        "id": conversation.id,
        "name": conversation.name,
        "configurationId": conversation.configuration_id,
        "createdAt": conversation.created_at.isoformat() if conversation.created_at else None,
        "updatedAt": conversation.updated_at.isoformat() if conversation.updated_at else None,
    }


def message_to_json(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "type": message.type,
        "content": (message.data or {}).get("content", ""),
        "rating": message.rating or "unrated",
        "error": message.error,
        "tools": message.tools or [],
        "debug": message.debug or [],
        "sources": message.sources or [],
        "parentId": message.parent_id,
        "configurationId": message.configuration_id,
        "createdAt": message.created_at.isoformat() if message.created_at else None,
    }


class ConversationService:
    """CRUD for conversations; every lookup is restricted to the owning user."""

    def __init__(self, session_factory: SessionFactory, extension_service: ExtensionService) -> None:
        self.session_factory = session_factory
        self.extension_service = extension_service

    def get_conversations(self, user: User) -> List[Conversation]:
        """Conversations of the user, newest first."""
        with self.session_factory() as session:
            return list(
                session.scalars(
                    select(Conversation)
                    .where(Conversation.user_id == user.id)
                    .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
                ).all()
            )

    def get_conversation(self, user: User, conversation_id: int) -> Conversation:
        with self.session_factory() as session:
            conversation = session.get(Conversation, conversation_id)
            if conversation is None or conversation.user_id != user.id:
                raise NotFoundError(message=f"Conversation {conversation_id} not found")
            return conversation

    def create_conversation(
        self, user: User, configuration_id: int, name: Optional[str] = None
    ) -> Conversation:
        # Raises when the assistant is not available to the user
        self.extension_service.get_configuration(user, configuration_id)

        with self.session_factory() as session:
            conversation = Conversation(
                user_id=user.id, configuration_id=configuration_id, name=name
            )
            session.add(conversation)
            session.commit()

        logger.info(f"Created conversation {conversation.id} for user {user.id}")
        return conversation

    def update_conversation(self, user: User, conversation_id: int, name: str) -> Conversation:
        with self.session_factory() as session:
            conversation = session.get(Conversation, conversation_id)
            if conversation is None or conversation.user_id != user.id:
                raise NotFoundError(message=f"Conversation {conversation_id} not found")

            conversation.name = name
            session.commit()
            return conversation

    def delete_conversation(self, user: User, conversation_id: int) -> None:
        with self.session_factory() as session:
            conversation = session.get(Conversation, conversation_id)
            if conversation is None or conversation.user_id != user.id:
                raise NotFoundError(message=f"Conversation {conversation_id} not found")

            session.delete(conversation)
            session.commit()

        logger.info(f"Deleted conversation {conversation_id}")

    def get_messages(self, user: User, conversation_id: int) -> List[Message]:
        """The current thread: from the root to the latest message."""
        with self.session_factory() as session:
            conversation = session.get(Conversation, conversation_id)
            if conversation is None or conversation.user_id != user.id:
                raise NotFoundError(message=f"Conversation {conversation_id} not found")

            latest = get_latest_message(session, conversation_id)
            if latest is None:
                return []
            return get_message_thread(session, conversation_id, latest.id)

    def rate_message(
        self, user: User, conversation_id: int, message_id: int, rating: str
    ) -> Message:
        if rating not in MESSAGE_RATINGS:
            raise BadRequestError(message=f"Invalid rating '{rating}'")

        with self.session_factory() as session:
            message = session.get(Message, message_id)
            if (
                message is None
                or message.conversation_id != conversation_id
                or message.conversation.user_id != user.id
            ):
                raise NotFoundError(message=f"Message {message_id} not found")

            message.rating = None if rating == "unrated" else rating
            session.commit()
            return message
