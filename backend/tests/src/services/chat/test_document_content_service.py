"""Unit tests for the DocumentContentService."""

import unittest
from unittest.mock import Mock

from backend.src.api.middleware.exceptions import NotFoundError
from backend.src.data_classes import Source, SourceChunk, SourceDocument
from backend.src.services.chat.document_content_service import DocumentContentService
from backend.src.services.extensions import BaseExtension, ExtensionService
from backend.tests.database_fixtures import (
    add_configuration,
    add_conversation,
    add_message,
    add_user,
    create_test_session_factory,
)


def stored_source(document_uri: str, chunk_uri: str, content: str = "") -> dict:
    return Source(
        title="Handbook",
        chunk=SourceChunk(content=content, uri=chunk_uri),
        document=SourceDocument(uri=document_uri),
        extension_external_id="sources-1",
    ).to_json()


class TestDocumentContentService(unittest.TestCase):
    """Test cases for the DocumentContentService class."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.session_factory = create_test_session_factory()
        self.user = add_user(self.session_factory)
        configuration = add_configuration(self.session_factory)
        self.conversation = add_conversation(self.session_factory, self.user, configuration)

        self.extension = Mock(spec=BaseExtension)
        self.extension.get_chunks.return_value = ["Remote 1", "Remote 2"]
        self.extension_service = Mock(spec=ExtensionService)
        self.extension_service.get_extension_by_external_id.return_value = self.extension

        self.service = DocumentContentService(self.session_factory, self.extension_service)

    def _answer(self, sources: list):
        return add_message(
            self.session_factory, self.conversation, "Answer", "ai", sources=sources
        )

    def test_inline_content_is_returned(self) -> None:
        message = self._answer(
            [
                stored_source("doc://1", "chunk://1", "First"),
                stored_source("doc://2", "chunk://2", "Other"),
                stored_source("doc://1", "chunk://3", "Second"),
            ]
        )

        content = self.service.get_document_content(
            self.user, self.conversation.id, message.id, "doc://1"
        )

        self.assertEqual(content, ["First", "Second"])
        self.extension_service.get_extension_by_external_id.assert_not_called()

    def test_missing_content_is_fetched_from_extension(self) -> None:
        message = self._answer(
            [
                stored_source("doc://1", "chunk://1", "First"),
                stored_source("doc://1", "chunk://2"),
            ]
        )

        content = self.service.get_document_content(
            self.user, self.conversation.id, message.id, "doc://1"
        )

        self.assertEqual(content, ["Remote 1", "Remote 2"])
        self.extension_service.get_extension_by_external_id.assert_called_once_with("sources-1")
        self.extension.get_chunks.assert_called_once_with("doc://1", ["chunk://1", "chunk://2"])

    def test_no_chunk_uris(self) -> None:
        message = self._answer([stored_source("doc://1", None)])

        content = self.service.get_document_content(
            self.user, self.conversation.id, message.id, "doc://1"
        )

        self.assertEqual(content, [])
        self.extension.get_chunks.assert_not_called()

    def test_unavailable_extension(self) -> None:
        self.extension_service.get_extension_by_external_id.return_value = None
        message = self._answer([stored_source("doc://1", "chunk://1")])

        content = self.service.get_document_content(
            self.user, self.conversation.id, message.id, "doc://1"
        )

        self.assertEqual(content, [])

    def test_document_not_cited(self) -> None:
        message = self._answer([stored_source("doc://1", "chunk://1", "First")])

        with self.assertRaises(NotFoundError):
            self.service.get_document_content(
                self.user, self.conversation.id, message.id, "doc://2"
            )

    def test_message_not_visible(self) -> None:
        message = self._answer([stored_source("doc://1", "chunk://1", "First")])
        other_user = add_user(self.session_factory, "user2")

        cases = [
            (self.user, self.conversation.id, message.id + 1),
            (self.user, self.conversation.id + 1, message.id),
            (other_user, self.conversation.id, message.id),
        ]
        for user, conversation_id, message_id in cases:
            with self.assertRaises(NotFoundError):
                self.service.get_document_content(user, conversation_id, message_id, "doc://1")


if __name__ == "__main__":
    unittest.main()
