"""Service for managing buckets, the upload targets of the retrieval services."""

import logging
from typing import Any, Callable, Dict, List

from sqlalchemy import select

from backend.src.api.middleware.exceptions import BadRequestError, NotFoundError
from backend.src.database import Bucket, BucketType, SessionFactory
from backend.src.services.files.files_api import FilesApi
from backend.src.services.files.utils import build_client, open_client

logger = logging.getLogger(__name__)

BUCKET_FIELDS = (
    "name",
    "endpoint",
    "index_name",
    "headers",
    "is_default",
    "per_user_quota",
    "allowed_file_name_extensions",
    "file_size_limits",
    "type",
)


def bucket_to_json(bucket: Bucket) -> Dict[str, Any]:
    return {
        "id": bucket.id,
        "name": bucket.name,
        "endpoint": bucket.endpoint,
        "indexName": bucket.index_name,
        "headers": bucket.headers,
        "isDefault": bucket.is_default,
        "perUserQuota": bucket.per_user_quota,
        "allowedFileNameExtensions": bucket.allowed_file_name_extensions,
        "fileSizeLimits": bucket.file_size_limits,
        "type": bucket.type,
    }


class BucketService:
    """CRUD operations on buckets plus a connectivity test."""

    def __init__(
        self,
        session_factory: SessionFactory,
        client_factory: Callable[[Bucket], FilesApi] = build_client,
    ) -> None:
        self.session_factory = session_factory
        self.client_factory = client_factory

    def get_buckets(self) -> List[Bucket]:
        with self.session_factory() as session:
            return list(session.scalars(select(Bucket).order_by(Bucket.id.asc())).all())

    def get_bucket(self, bucket_id: int) -> Bucket:
        with self.session_factory() as session:
            bucket = session.get(Bucket, bucket_id)
            if bucket is None:
                raise NotFoundError(f"Cannot find bucket {bucket_id}")
            return bucket

    def create_bucket(self, values: Dict[str, Any]) -> Bucket:
        """Create a bucket from snake_case field values."""
        self._validate_type(values)
        with self.session_factory() as session:
            bucket = Bucket()
            self._assign(bucket, values)
            session.add(bucket)
            session.commit()
            logger.info(f"Created bucket {bucket.id} ({bucket.name})")
            return bucket

    def update_bucket(self, bucket_id: int, values: Dict[str, Any]) -> Bucket:
        """Update the given fields of a bucket, other fields keep their value."""
        self._validate_type(values)
        with self.session_factory() as session:
            bucket = session.get(Bucket, bucket_id)
            if bucket is None:
                raise NotFoundError(f"Cannot find bucket {bucket_id}")
            self._assign(bucket, values)
            session.commit()
            logger.info(f"Updated bucket {bucket.id}")
            return bucket

    def delete_bucket(self, bucket_id: int) -> None:
        """Delete a bucket and, through the cascade, its file records."""
        with self.session_factory() as session:
            bucket = session.get(Bucket, bucket_id)
            if bucket is None:
                raise NotFoundError(f"Cannot find bucket {bucket_id}")
            session.delete(bucket)
            session.commit()
            logger.info(f"Deleted bucket {bucket_id}")

    def test_bucket(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Check that the retrieval service of a (possibly unsaved) bucket answers.

        Returns:
            Dictionary with ``ok`` and either the supported extensions or the error
        """
        bucket = Bucket()
        self._assign(bucket, values)
        try:
            with open_client(self.client_factory, bucket) as api:
                file_types = api.get_file_types()
        except Exception as e:
            logger.warning(f"Bucket test against {bucket.endpoint} failed: {str(e)}")
            return {"ok": False, "error": str(e)}

        return {"ok": True, "fileNameExtensions": [ft.file_name_extension for ft in file_types]}

    @staticmethod
    def _assign(bucket: Bucket, values: Dict[str, Any]) -> None:
        for key in BUCKET_FIELDS:
            if key in values and values[key] is not None:
                setattr(bucket, key, values[key])

    @staticmethod
    def _validate_type(values: Dict[str, Any]) -> None:
        bucket_type = values.get("type")
        if bucket_type is not None and bucket_type not in {t.value for t in BucketType}:
            raise BadRequestError(f"Invalid bucket type: {bucket_type}")
