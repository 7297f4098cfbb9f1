"""Service resolving the text of a document cited by an AI message."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from backend.src.api.middleware.exceptions import NotFoundError
from backend.src.data_classes import Source
from backend.src.database import Message, SessionFactory, User
from backend.src.services.extensions.extension_service import ExtensionService

logger = logging.getLogger(__name__)


class DocumentContentService:
    """Look up the content of a document among the sources of a message."""

    def __init__(self, session_factory: SessionFactory, extension_service: ExtensionService) -> None:
        self.session_factory = session_factory
        self.extension_service = extension_service

    def get_document_content(
        self, user: User, conversation_id: int, message_id: int, document_uri: str
    ) -> List[str]:
        """Get the chunk texts of a document cited by a message.

        Chunk contents captured with the sources are returned as is. When at
        least one is missing, the chunks are fetched from the extension that
        produced the first matching source.

        Args:
            user: User requesting the content
            conversation_id: Conversation of the message
            message_id: Message citing the document
            document_uri: URI of the cited document

        Returns:
            List[str]: Chunk texts in source order, possibly empty

        Raises:
            NotFoundError: If the message is not visible to the user or does
                not cite the document
        """
        with self.session_factory() as session:
            message = session.scalar(
                select(Message)
                .options(joinedload(Message.conversation))
                .where(Message.id == message_id)
            )

            if (
                message is None
                or message.conversation_id != conversation_id
                or message.conversation.user_id != user.id
            ):
                raise NotFoundError(message=f"Message {message_id} not found")

            stored_sources = list(message.sources or [])

        sources = [
            source
            for source in (Source.from_json(item) for item in stored_sources)
            if source.document.uri == document_uri
        ]
        if not sources:
            raise NotFoundError(message=f"Document {document_uri} not found in message sources")

        if all(source.chunk.content for source in sources):
            return [source.chunk.content for source in sources]

        chunk_uris = [source.chunk.uri for source in sources if source.chunk.uri]
        if not chunk_uris:
            return []

        extension = self.extension_service.get_extension_by_external_id(
            sources[0].extension_external_id
        )
        if extension is None:
            logger.warning(
                f"Extension '{sources[0].extension_external_id}' of document {document_uri} "
                "is not available"
            )
            return []

        return extension.get_chunks(document_uri, chunk_uris)
