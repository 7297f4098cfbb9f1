"""File services package.

This package provides:
- FileService: upload pipeline, file listing and deletion
- BucketService: bucket administration
- FilesApi: client for the external retrieval service
"""

from .bucket_service import BucketService, bucket_to_json
from .file_service import EmbedType, FileService, FilesPage, UploadFileParams
from .files_api import FilesApi, FileType, ResponseError

__all__ = [
    "BucketService",
    "bucket_to_json",
    "EmbedType",
    "FileService",
    "FilesPage",
    "UploadFileParams",
    "FilesApi",
    "FileType",
    "ResponseError",
]
