"""Conversation endpoints module.

This module provides Flask routes for conversations, their messages and the
content of documents cited by AI messages.
"""

import logging
from typing import Literal, Optional, Tuple

from flask import Blueprint, Response, jsonify
from flask_pydantic import validate  # type: ignore
from pydantic import BaseModel, ConfigDict, Field

from backend.src.api.utils.auth import get_current_user
from backend.src.database import SessionFactory
from backend.src.services.chat.document_content_service import DocumentContentService
from backend.src.services.conversations import (
    ConversationService,
    conversation_to_json,
    message_to_json,
)

logger = logging.getLogger(__name__)


# Schema definitions
class CreateConversationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    configuration_id: int = Field(..., alias="configurationId")
    name: Optional[str] = Field(None, max_length=255)


class UpdateConversationRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class RateMessageRequest(BaseModel):
    rating: Literal["good", "bad", "unrated"]


class DocumentContentQuery(BaseModel):
    uri: str = Field(..., min_length=1, description="URI of the cited document")


def init_conversations_routes(
    session_factory: SessionFactory,
    conversation_service: ConversationService,
    document_content_service: DocumentContentService,
) -> Blueprint:
    """Initialize conversation routes with the provided services.

    Args:
        session_factory: Database sessions, used to resolve the current user
        conversation_service: Service for conversations and messages
        document_content_service: Service resolving cited documents

    Returns:
        Blueprint: Flask blueprint with configured conversation routes.
    """
    conversations_bp = Blueprint("conversations", __name__)

    @conversations_bp.route("/conversations", methods=["GET"])
    def get_conversations() -> Tuple[Response, int]:
        user = get_current_user(session_factory)

        conversations = conversation_service.get_conversations(user)
        return jsonify({"items": [conversation_to_json(c) for c in conversations]}), 200

    @conversations_bp.route("/conversations", methods=["POST"])
    @validate()
    def create_conversation(body: CreateConversationRequest) -> Tuple[Response, int]:  # type: ignore
        user = get_current_user(session_factory)

        conversation = conversation_service.create_conversation(
            user, body.configuration_id, name=body.name
        )
        return jsonify(conversation_to_json(conversation)), 201

    @conversations_bp.route("/conversations/<int:conversation_id>", methods=["GET"])
    def get_conversation(conversation_id: int) -> Tuple[Response, int]:
        user = get_current_user(session_factory)

        conversation = conversation_service.get_conversation(user, conversation_id)
        return jsonify(conversation_to_json(conversation)), 200

    @conversations_bp.route("/conversations/<int:conversation_id>", methods=["PUT"])
    @validate()
    def update_conversation(conversation_id: int, body: UpdateConversationRequest) -> Tuple[Response, int]:  # type: ignore
        user = get_current_user(session_factory)

        conversation = conversation_service.update_conversation(user, conversation_id, body.name)
        return jsonify(conversation_to_json(conversation)), 200

    @conversations_bp.route("/conversations/<int:conversation_id>", methods=["DELETE"])
    def delete_conversation(conversation_id: int) -> Tuple[Response, int]:
        user = get_current_user(session_factory)

        conversation_service.delete_conversation(user, conversation_id)
        return jsonify({}), 200

    @conversations_bp.route("/conversations/<int:conversation_id>/messages", methods=["GET"])
    def get_messages(conversation_id: int) -> Tuple[Response, int]:
        """The current thread of the conversation, root first."""
        user = get_current_user(session_factory)

        messages = conversation_service.get_messages(user, conversation_id)
        return jsonify({"items": [message_to_json(m) for m in messages]}), 200

    @conversations_bp.route(
        "/conversations/<int:conversation_id>/messages/<int:message_id>/rating",
        methods=["PUT"],
    )
    @validate()
    def rate_message(conversation_id: int, message_id: int, body: RateMessageRequest) -> Tuple[Response, int]:  # type: ignore
        user = get_current_user(session_factory)

        message = conversation_service.rate_message(
            user, conversation_id, message_id, body.rating
        )
        return jsonify(message_to_json(message)), 200

    @conversations_bp.route(
        "/conversations/<int:conversation_id>/messages/<int:message_id>/documents",
        methods=["GET"],
    )
    @validate()
    def get_document_content(conversation_id: int, message_id: int, query: DocumentContentQuery) -> Tuple[Response, int]:  # type: ignore
        """Text of a document cited by an AI message, one entry per chunk."""
        user = get_current_user(session_factory)

        content = document_content_service.get_document_content(
            user, conversation_id, message_id, query.uri
        )
        return jsonify({"content": content}), 200

    return conversations_bp
