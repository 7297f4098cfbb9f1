"""Data classes module for chat and file handling.

This module provides the core data structures exchanged between services:

Classes:
    - Source, SourceChunk, SourceDocument: Document references attributed to answers
    - ChatMessage, HumanMessage, AIMessage, SystemMessage: Messages of a chat history
    - UploadedFile: API representation of a stored file
"""

from backend.src.data_classes.chat_message import (
    AIMessage,
    ChatMessage,
    HumanMessage,
    SystemMessage,
    is_ai_message,
    message_from_stored,
    messages_from_entities,
)
from backend.src.data_classes.source import Source, SourceChunk, SourceDocument
from backend.src.data_classes.uploaded_file import UploadedFile, build_file

__all__ = [
    "Source",
    "SourceChunk",
    "SourceDocument",
    "ChatMessage",
    "HumanMessage",
    "AIMessage",
    "SystemMessage",
    "is_ai_message",
    "message_from_stored",
    "messages_from_entities",
    "UploadedFile",
    "build_file",
]
