"""Unit tests for the BucketService."""

import unittest
from unittest.mock import Mock

from backend.src.api.middleware.exceptions import BadRequestError, NotFoundError
from backend.src.database import BucketType, File
from backend.src.services.files import BucketService, FilesApi, FileType
from backend.src.services.files.bucket_service import bucket_to_json
from backend.tests.database_fixtures import (
    add_bucket,
    add_file,
    create_test_session_factory,
)


class TestBucketService(unittest.TestCase):
    """Test cases for the BucketService class."""

    def setUp(self) -> None:
        """Set up test fixtures before each test method."""
        self.session_factory = create_test_session_factory()
        self.mock_api = Mock(spec=FilesApi)
        self.client_factory = Mock(return_value=self.mock_api)
        self.bucket_service = BucketService(
            self.session_factory, client_factory=self.client_factory
        )

    def test_create_and_get_bucket(self) -> None:
        created = self.bucket_service.create_bucket(
            {
                "name": "Documents",
                "endpoint": "http://retrieval:8000",
                "type": "user",
                "per_user_quota": 5,
                "file_size_limits": {"general": 10},
            }
        )

        bucket = self.bucket_service.get_bucket(created.id)
        self.assertEqual(bucket.name, "Documents")
        self.assertEqual(bucket.type, BucketType.USER.value)
        self.assertEqual(bucket.per_user_quota, 5)
        self.assertFalse(bucket.is_default)

        data = bucket_to_json(bucket)
        self.assertEqual(data["perUserQuota"], 5)
        self.assertEqual(data["fileSizeLimits"], {"general": 10})

    def test_create_bucket_with_invalid_type(self) -> None:
        with self.assertRaises(BadRequestError):
            self.bucket_service.create_bucket(
                {"name": "Broken", "endpoint": "http://retrieval:8000", "type": "team"}
            )
        self.assertEqual(self.bucket_service.get_buckets(), [])

    def test_update_keeps_unset_fields(self) -> None:
        bucket = add_bucket(self.session_factory, BucketType.GENERAL, index_name="docs")

        updated = self.bucket_service.update_bucket(bucket.id, {"name": "Renamed"})

        self.assertEqual(updated.name, "Renamed")
        self.assertEqual(updated.index_name, "docs")
        self.assertEqual(updated.endpoint, "http://retrieval:8000")

    def test_missing_bucket(self) -> None:
        with self.assertRaises(NotFoundError):
            self.bucket_service.get_bucket(1)
        with self.assertRaises(NotFoundError):
            self.bucket_service.update_bucket(1, {"name": "x"})
        with self.assertRaises(NotFoundError):
            self.bucket_service.delete_bucket(1)

    def test_delete_bucket_removes_files(self) -> None:
        bucket = add_bucket(self.session_factory)
        file = add_file(self.session_factory, bucket=bucket)

        self.bucket_service.delete_bucket(bucket.id)

        self.assertEqual(self.bucket_service.get_buckets(), [])
        with self.session_factory() as session:
            self.assertIsNone(session.get(File, file.id))

    def test_get_buckets_ordered_by_id(self) -> None:
        first = add_bucket(self.session_factory, BucketType.USER)
        second = add_bucket(self.session_factory, BucketType.GENERAL)

        self.assertEqual([b.id for b in self.bucket_service.get_buckets()], [first.id, second.id])

    def test_test_bucket(self) -> None:
        self.mock_api.get_file_types.return_value = [FileType(".pdf"), FileType(".txt")]

        result = self.bucket_service.test_bucket({"endpoint": "http://retrieval:8000"})

        self.assertEqual(result, {"ok": True, "fileNameExtensions": [".pdf", ".txt"]})
        self.assertEqual(self.client_factory.call_args[0][0].endpoint, "http://retrieval:8000")
        self.mock_api.close.assert_called_once()

    def test_test_bucket_unreachable(self) -> None:
        self.mock_api.get_file_types.side_effect = ConnectionError("refused")

        result = self.bucket_service.test_bucket({"endpoint": "http://nowhere"})

        self.assertFalse(result["ok"])
        self.assertIn("refused", result["error"])
        self.mock_api.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
