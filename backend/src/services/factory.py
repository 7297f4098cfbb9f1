"""Service factory module for centralized service instantiation.

This module provides factory methods for creating service instances,
keeping service initialization logic in one place.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from backend.conf.config import Config
from backend.src.database import SessionFactory, create_session_factory
from backend.src.services.chat.chat_service import ChatService
from backend.src.services.chat.document_content_service import DocumentContentService
from backend.src.services.conversations import ConversationService
from backend.src.services.extensions import ExtensionService
from backend.src.services.files import BucketService, FileService
from backend.src.services.localization import I18nService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """All services used by the API."""

    session_factory: SessionFactory
    i18n: I18nService
    extension_service: ExtensionService
    file_service: FileService
    bucket_service: BucketService
    conversation_service: ConversationService
    document_content_service: DocumentContentService
    chat_service: ChatService


def create_i18n_service(locale: Optional[str] = None) -> I18nService:
    """Create the translation service for the configured locale."""
    return I18nService(locale or Config.LOCALE)


def create_extension_service(session_factory: SessionFactory) -> ExtensionService:
    return ExtensionService(session_factory)


def create_file_service(session_factory: SessionFactory, i18n: I18nService) -> FileService:
    return FileService(session_factory, i18n=i18n)


def create_bucket_service(session_factory: SessionFactory) -> BucketService:
    return BucketService(session_factory)


def create_chat_service(
    session_factory: SessionFactory,
    extension_service: ExtensionService,
    i18n: I18nService,
    file_service: Optional[FileService] = None,
) -> ChatService:
    """Create the chat service with the history, file search and execution middlewares."""
    return ChatService(session_factory, extension_service, i18n=i18n, file_service=file_service)


def create_services(session_factory: Optional[SessionFactory] = None) -> Services:
    """Create and wire all services.

    Args:
        session_factory: Database sessions to use. If None, one is created
            from Config.DATABASE_URL

    Returns:
        Configured services
    """
    if session_factory is None:
        logger.info("No session factory provided, connecting to the configured database")
        session_factory = create_session_factory()

    i18n = create_i18n_service()
    extension_service = create_extension_service(session_factory)

    logger.info("Creating file services")
    file_service = create_file_service(session_factory, i18n)
    bucket_service = create_bucket_service(session_factory)

    logger.info("Creating chat services")
    chat_service = create_chat_service(
        session_factory, extension_service, i18n, file_service=file_service
    )

    return Services(
        session_factory=session_factory,
        i18n=i18n,
        extension_service=extension_service,
        file_service=file_service,
        bucket_service=bucket_service,
        conversation_service=ConversationService(session_factory, extension_service),
        document_content_service=DocumentContentService(session_factory, extension_service),
        chat_service=chat_service,
    )
