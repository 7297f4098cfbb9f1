"""Database package: ORM models, session setup and thread queries."""

from .messages import get_latest_message, get_message_thread
from .models import (
    Base,
    Blob,
    BlobCategory,
    Bucket,
    BucketType,
    Configuration,
    Conversation,
    ConversationFile,
    Extension,
    File,
    FileUploadStatus,
    Message,
    MessageType,
    User,
    UserGroup,
)
from .session import SessionFactory, create_session_factory

__all__ = [
    # Models
    "Base",
    "Blob",
    "Bucket",
    "Configuration",
    "Conversation",
    "ConversationFile",
    "Extension",
    "File",
    "Message",
    "User",
    "UserGroup",
    # Enums
    "BlobCategory",
    "BucketType",
    "FileUploadStatus",
    "MessageType",
    # Session
    "SessionFactory",
    "create_session_factory",
    # Queries
    "get_latest_message",
    "get_message_thread",
]
