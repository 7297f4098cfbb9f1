"""Chat endpoints module.

This module provides the Flask route sending a message to the assistant of a
conversation. The events of the turn (chunk, tool_start, tool_end, debug,
sources, saved, error, completed) are streamed as Server-Sent Events.
"""

import logging
import queue
from typing import List, Optional

from flask import Blueprint, Response
from flask_pydantic import validate  # type: ignore
from pydantic import BaseModel, ConfigDict, Field

from backend.src.api.utils.auth import get_current_user
from backend.src.api.utils.sse import create_sse_response, stream_events
from backend.src.database import SessionFactory
from backend.src.services.chat.chat_service import ChatService
from backend.src.services.chat.result_channel import ChatEvent

logger = logging.getLogger(__name__)


# Schema definitions
class SendMessageRequest(BaseModel):
    """Chat request model for validation."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1, description="User's message")
    files: List[int] = Field(default_factory=list, description="Ids of attached files")
    edit_message_id: Optional[int] = Field(
        None, alias="editMessageId", description="Message replaced by this one"
    )
    configuration_id: Optional[int] = Field(
        None, alias="configurationId", description="Assistant to switch to"
    )


def init_chat_routes(session_factory: SessionFactory, chat_service: ChatService) -> Blueprint:
    """Initialize chat routes with the provided services.

    Args:
        session_factory: Database sessions, used to resolve the current user
        chat_service: Service running chat turns

    Returns:
        Blueprint: Flask blueprint with configured chat routes.
    """
    chat_bp = Blueprint("chat", __name__)

    @chat_bp.route("/conversations/<int:conversation_id>/messages", methods=["POST"])
    @validate()
    def send_message(conversation_id: int, body: SendMessageRequest) -> Response:  # type: ignore
        """Send a message and stream the answer of the assistant.

        Args:
            conversation_id: Conversation the message belongs to
            body: Validated request body

        Returns:
            Streaming response with the chat events
        """
        user = get_current_user(session_factory)

        # Unknown conversations or files fail before the stream starts
        context = chat_service.create_context(
            user,
            conversation_id,
            body.query,
            file_ids=body.files,
            edit_message_id=body.edit_message_id,
            configuration_id=body.configuration_id,
        )

        event_queue: "queue.Queue[ChatEvent]" = queue.Queue()
        context.result.subscribe(event_queue.put)

        return create_sse_response(
            stream_events(lambda: chat_service.run(context), event_queue)
        )

    return chat_bp
