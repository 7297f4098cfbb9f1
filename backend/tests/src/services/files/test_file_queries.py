"""Unit tests for listing, typing and deleting files with FileService."""

import unittest
from unittest.mock import Mock

from backend.src.api.middleware.exceptions import ForbiddenError, NotFoundError
from backend.src.database import BucketType, ConversationFile, File
from backend.src.services.files import FilesApi, FileService, FileType
from backend.tests.database_fixtures import (
    add,
    add_bucket,
    add_configuration,
    add_conversation,
    add_file,
    add_user,
    create_test_session_factory,
)


class TestGetFiles(unittest.TestCase):
    """Test cases for FileService.get_files."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.session_factory = create_test_session_factory()
        self.user = add_user(self.session_factory, "1")
        self.other_user = add_user(self.session_factory, "2")
        self.file_service = FileService(self.session_factory, client_factory=Mock())

    def _ids(self, page) -> list:
        return [f.id for f in page.files]

    def test_general_bucket_returns_all_files_of_bucket(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.GENERAL)
        other_bucket = add_bucket(self.session_factory, BucketType.GENERAL)
        first = add_file(self.session_factory, user=self.user, bucket=bucket)
        second = add_file(self.session_factory, user=self.other_user, bucket=bucket)
        add_file(self.session_factory, user=self.user, bucket=other_bucket)

        page = self.file_service.get_files(self.user, bucket.id, page=0, page_size=10)

        self.assertEqual(page.total, 2)
        self.assertEqual(self._ids(page), [first.id, second.id])

    def test_conversation_bucket_without_conversation_returns_user_files(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.CONVERSATION)
        first = add_file(self.session_factory, user=self.user, bucket=bucket)
        second = add_file(self.session_factory, user=self.user, bucket=bucket)
        add_file(self.session_factory, user=self.other_user, bucket=bucket)

        page = self.file_service.get_files(self.user, bucket.id, page=0, page_size=10)

        self.assertEqual(page.total, 2)
        self.assertEqual(self._ids(page), [first.id, second.id])

    def test_conversation_bucket_with_conversation_returns_attached_files(self) -> None:
        """Exactly the user's files attached to the conversation, ascending by id."""
        configuration = add_configuration(self.session_factory)
        conversation = add_conversation(self.session_factory, self.user, configuration)
        other_conversation = add_conversation(self.session_factory, self.user, configuration)
        foreign_conversation = add_conversation(self.session_factory, self.other_user, configuration)

        bucket = add_bucket(self.session_factory, BucketType.CONVERSATION)
        other_bucket = add_bucket(self.session_factory, BucketType.USER)

        attached = add_file(self.session_factory, user=self.user, bucket=bucket)
        elsewhere = add_file(self.session_factory, user=self.user, bucket=bucket)
        foreign = add_file(self.session_factory, user=self.other_user, bucket=bucket)
        attached_other_bucket = add_file(self.session_factory, user=self.user, bucket=other_bucket)

        for file, conv in (
            (attached, conversation),
            (elsewhere, other_conversation),
            (foreign, foreign_conversation),
            (attached_other_bucket, conversation),
        ):
            add(self.session_factory, ConversationFile(conversation_id=conv.id, file_id=file.id))

        page = self.file_service.get_files(
            self.user, bucket.id, page=0, page_size=10, conversation_id=conversation.id
        )

        self.assertEqual(page.total, 2)
        self.assertEqual(self._ids(page), [attached.id, attached_other_bucket.id])

    def test_user_bucket_returns_own_files(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.USER)
        own = add_file(self.session_factory, user=self.user, bucket=bucket)
        add_file(self.session_factory, user=self.other_user, bucket=bucket)

        page = self.file_service.get_files(self.user, "user", page=0, page_size=10)

        self.assertEqual(page.total, 1)
        self.assertEqual(self._ids(page), [own.id])

    def test_bucket_by_type_prefers_default(self) -> None:
        add_bucket(self.session_factory, BucketType.USER)
        default = add_bucket(self.session_factory, BucketType.USER, is_default=True)
        own = add_file(self.session_factory, user=self.user, bucket=default)

        page = self.file_service.get_files(self.user, "user", page=0, page_size=10)

        self.assertEqual(self._ids(page), [own.id])

    def test_missing_bucket(self) -> None:
        for bucket_id_or_type in ("user", "conversation", "general", 99):
            with self.assertRaises(NotFoundError):
                self.file_service.get_files(self.user, bucket_id_or_type, page=0, page_size=10)

    def test_pagination_and_search(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.USER)
        files = [
            add_file(self.session_factory, f"{name}.pdf", user=self.user, bucket=bucket)
            for name in ("alpha", "beta", "Alphabet", "gamma")
        ]

        page = self.file_service.get_files(self.user, bucket.id, page=1, page_size=3)
        self.assertEqual(page.total, 4)
        self.assertEqual(self._ids(page), [files[3].id])

        page = self.file_service.get_files(
            self.user, bucket.id, page=0, page_size=10, search_query="alpha"
        )
        self.assertEqual(page.total, 2)
        self.assertEqual(self._ids(page), [files[0].id, files[2].id])


class TestFileManagement(unittest.TestCase):
    """Test cases for FileService.get_file_types and FileService.delete_file."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.session_factory = create_test_session_factory()
        self.user = add_user(self.session_factory, "user1")
        self.admin = add_user(self.session_factory, "admin", is_admin=True)

        self.mock_api = Mock(spec=FilesApi)
        self.mock_api.get_file_types.return_value = [FileType(".pdf"), FileType(".txt")]
        self.file_service = FileService(
            self.session_factory, client_factory=lambda bucket: self.mock_api
        )

    def _exists(self, file_id: int) -> bool:
        with self.session_factory() as session:
            return session.get(File, file_id) is not None

    def test_get_file_types_filtered_by_allowlist(self) -> None:
        bucket = add_bucket(self.session_factory, allowed_file_name_extensions=[".txt"])
        open_bucket = add_bucket(self.session_factory)

        self.assertEqual(
            [ft.file_name_extension for ft in self.file_service.get_file_types(bucket.id)],
            [".txt"],
        )
        self.assertEqual(
            [ft.file_name_extension for ft in self.file_service.get_file_types(open_bucket.id)],
            [".pdf", ".txt"],
        )

    def test_get_file_types_missing_bucket(self) -> None:
        with self.assertRaises(NotFoundError):
            self.file_service.get_file_types(7)

    def test_delete_own_file(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.USER)
        file = add_file(self.session_factory, user=self.user, bucket=bucket)

        self.file_service.delete_file(self.user, bucket.id, file.id)

        self.mock_api.delete_file.assert_called_once_with(str(file.id))
        self.mock_api.close.assert_called_once()
        self.assertFalse(self._exists(file.id))

    def test_delete_file_of_other_user(self) -> None:
        other_user = add_user(self.session_factory, "user2")
        bucket = add_bucket(self.session_factory, BucketType.USER)
        file = add_file(self.session_factory, user=other_user, bucket=bucket)

        with self.assertRaises(NotFoundError):
            self.file_service.delete_file(self.user, bucket.id, file.id)

        self.mock_api.delete_file.assert_not_called()
        self.assertTrue(self._exists(file.id))

    def test_delete_file_in_wrong_bucket(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.USER)
        other_bucket = add_bucket(self.session_factory, BucketType.USER)
        file = add_file(self.session_factory, user=self.user, bucket=bucket)

        with self.assertRaises(NotFoundError):
            self.file_service.delete_file(self.user, other_bucket.id, file.id)

    def test_delete_general_file_requires_admin(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.GENERAL)
        file = add_file(self.session_factory, bucket=bucket)

        with self.assertRaises(ForbiddenError):
            self.file_service.delete_file(self.user, bucket.id, file.id)

        self.file_service.delete_file(self.admin, bucket.id, file.id)
        self.assertFalse(self._exists(file.id))

    def test_failed_remote_delete_keeps_record(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.USER)
        file = add_file(self.session_factory, user=self.user, bucket=bucket)
        self.mock_api.delete_file.side_effect = ConnectionError("unreachable")

        with self.assertRaises(ConnectionError):
            self.file_service.delete_file(self.user, bucket.id, file.id)

        self.mock_api.close.assert_called_once()
        self.assertTrue(self._exists(file.id))


if __name__ == "__main__":
    unittest.main()
