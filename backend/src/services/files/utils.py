"""Helpers shared by the file and bucket services."""

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from backend.conf.config import Config
from backend.src.database.models import Bucket, BucketType, User
from backend.src.services.files.files_api import FilesApi


def build_client(bucket: Bucket) -> FilesApi:
    """Create a client for the retrieval service of a bucket."""
    return FilesApi(endpoint=bucket.endpoint, headers=bucket.headers or {})


@contextmanager
def open_client(
    client_factory: Callable[[Bucket], FilesApi], bucket: Bucket
) -> Iterator[FilesApi]:
    """Create the client of a bucket and close its session when done."""
    api = client_factory(bucket)
    try:
        yield api
    finally:
        api.close()


def get_bucket_path(
    bucket: Bucket, user: Optional[User], conversation_id: Optional[int]
) -> str:
    """Path of a bucket in the retrieval service, scoped by user or conversation."""
    template = Config.BUCKET_PATHS.get(bucket.type, Config.BUCKET_PATHS[BucketType.GENERAL.value])
    return template.format(
        bucket_id=bucket.id,
        user_id=user.id if user else "",
        conversation_id=conversation_id if conversation_id is not None else "",
    )


def match_extension(file_name: str, extension: str) -> bool:
    return file_name.lower().endswith(extension.lower())


def get_relevant_limit(
    file_size_limits: Dict[str, float], file_name: str, mime_type: str
) -> Optional[float]:
    """Size limit in MB for a file: by mime type, else by extension, else general."""
    limit = file_size_limits.get(mime_type)

    if limit is None:
        extension = file_name[file_name.rfind(".") + 1 :].lower()
        limit = file_size_limits.get(extension)

    if limit is None:
        limit = file_size_limits.get("general")

    return limit


def is_file_size_within_limits(
    bucket: Bucket, file_name: str, mime_type: str, file_size: int
) -> bool:
    if not bucket.file_size_limits:
        # no limits configured, so they are never violated
        return True

    limit = get_relevant_limit(bucket.file_size_limits, file_name, mime_type)
    return limit is None or file_size <= limit * 1e6
