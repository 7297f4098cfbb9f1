"""SQLAlchemy ORM models for the assistant platform.

Uses SQLAlchemy 2.0 style with Mapped and mapped_column. JSON columns hold
the loosely structured parts of the schema (extension values, message
content, tool and debug logs, sources, bucket policies).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Current UTC timestamp."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all models."""


class FileUploadStatus(str, Enum):
    """Upload state of a file in the retrieval service."""

    # file upload to the retrieval service is in progress
    IN_PROGRESS = "inProgress"
    # file upload to the retrieval service was completed successfully
    SUCCESSFUL = "successful"


class BlobCategory(str, Enum):
    """Kind of payload stored in a blob."""

    FILE_ORIGINAL = "file_original"
    FILE_PROCESSED = "file_processed"


class BucketType(str, Enum):
    """Who may upload into a bucket.

    general: shared files, uploaded without user or conversation
    user: files owned by a single user
    conversation: files attached to a conversation of a user
    """

    GENERAL = "general"
    USER = "user"
    CONVERSATION = "conversation"


class MessageType(str, Enum):
    """Author of a message."""

    HUMAN = "human"
    AI = "ai"


class UserGroup(Base):
    __tablename__ = "user_groups"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    users: Mapped[List["User"]] = relationship(back_populates="user_group")


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_group_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("user_groups.id", ondelete="SET NULL"), nullable=True
    )

    user_group: Mapped[Optional[UserGroup]] = relationship(back_populates="users")
    conversations: Mapped[List["Conversation"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return bool(self.user_group and self.user_group.is_admin)


class Configuration(Base):
    """An assistant: a named bundle of extensions."""

    __tablename__ = "configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    # Empty means every user group may use the assistant
    user_group_ids: Mapped[List[str]] = mapped_column(JSON, default=list)

    extensions: Mapped[List["Extension"]] = relationship(
        back_populates="configuration", cascade="all, delete-orphan"
    )


class Extension(Base):
    """A configured integration: model provider, tool or retrieval source."""

    __tablename__ = "extensions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Kind of the extension, resolved against the extension registry
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    external_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    values: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    configuration_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("configurations.id", ondelete="CASCADE"), nullable=True
    )

    configuration: Mapped[Optional[Configuration]] = relationship(
        back_populates="extensions"
    )


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    configuration_id: Mapped[int] = mapped_column(
        ForeignKey("configurations.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    user: Mapped[User] = relationship(back_populates="conversations")
    configuration: Mapped[Configuration] = relationship()
    messages: Mapped[List["Message"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.id",
    )
    files: Mapped[List["ConversationFile"]] = relationship(
        back_populates="conversation", cascade="all, delete-orphan"
    )


class Message(Base):
    """A single message; parent links form a thread tree per conversation."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    rating: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tools: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    debug: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    sources: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    configuration_id: Mapped[int] = mapped_column(
        ForeignKey("configurations.id"), nullable=False
    )
    conversation_id: Mapped[int] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("messages.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    conversation: Mapped[Conversation] = relationship(back_populates="messages")
    parent: Mapped[Optional["Message"]] = relationship(remote_side=[id])


class ConversationFile(Base):
    """Links a file to a conversation and the message it was attached at."""

    __tablename__ = "conversation_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[int] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("messages.id", ondelete="CASCADE"), nullable=True
    )
    file_id: Mapped[int] = mapped_column(
        ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
    )

    conversation: Mapped[Conversation] = relationship(back_populates="files")
    file: Mapped["File"] = relationship(back_populates="conversations")


class Bucket(Base):
    """Upload target backed by a retrieval service."""

    __tablename__ = "buckets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    endpoint: Mapped[str] = mapped_column(String(500), nullable=False)
    index_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    headers: Mapped[Optional[Dict[str, str]]] = mapped_column(JSON, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    per_user_quota: Mapped[int] = mapped_column(Integer, default=20)
    allowed_file_name_extensions: Mapped[Optional[List[str]]] = mapped_column(
        JSON, nullable=True
    )
    # Limits in MB, keyed by mime type, file extension or "general"
    file_size_limits: Mapped[Optional[Dict[str, float]]] = mapped_column(
        JSON, nullable=True
    )
    type: Mapped[str] = mapped_column(String(20), default=BucketType.GENERAL.value)

    files: Mapped[List["File"]] = relationship(
        back_populates="bucket", cascade="all, delete-orphan"
    )


class File(Base):
    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    bucket_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("buckets.id", ondelete="CASCADE"), nullable=True, index=True
    )
    extension_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("extensions.id", ondelete="SET NULL"), nullable=True
    )
    upload_status: Mapped[str] = mapped_column(
        String(20), default=FileUploadStatus.IN_PROGRESS.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    bucket: Mapped[Optional[Bucket]] = relationship(back_populates="files")
    blobs: Mapped[List["Blob"]] = relationship(
        back_populates="file", cascade="all, delete-orphan"
    )
    conversations: Mapped[List[ConversationFile]] = relationship(
        back_populates="file", cascade="all, delete-orphan"
    )


class Blob(Base):
    """Binary payload of a file, stored base64 encoded."""

    __tablename__ = "blobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    file_id: Mapped[int] = mapped_column(
        ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    type: Mapped[str] = mapped_column(String(255), nullable=False)
    buffer: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)

    file: Mapped[File] = relationship(back_populates="blobs")
