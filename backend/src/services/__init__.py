"""Services package for backend functionality.

This package contains all service components for business logic.
"""

from .chat.chat_service import ChatService
from .chat.document_content_service import DocumentContentService
from .conversations import ConversationService
from .extensions import ExtensionService
from .factory import (
    Services,
    create_bucket_service,
    create_chat_service,
    create_extension_service,
    create_file_service,
    create_i18n_service,
    create_services,
)
from .files import BucketService, FileService
from .localization import I18nService

__all__ = [
    # Services
    "BucketService",
    "ChatService",
    "ConversationService",
    "DocumentContentService",
    "ExtensionService",
    "FileService",
    "I18nService",
    "Services",
    # Factory Functions
    "create_bucket_service",
    "create_chat_service",
    "create_extension_service",
    "create_file_service",
    "create_i18n_service",
    "create_services",
]
