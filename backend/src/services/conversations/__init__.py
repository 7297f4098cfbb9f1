"""Conversations package."""

from .conversation_service import (
    MESSAGE_RATINGS,
    ConversationService,
    conversation_to_json,
    message_to_json,
)

__all__ = ["ConversationService", "MESSAGE_RATINGS", "conversation_to_json", "message_to_json"]
