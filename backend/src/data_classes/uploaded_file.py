"""Data class representing a stored file as returned to API clients."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from backend.src.database.models import File


@dataclass
class UploadedFile:
    """A file known to the platform.

    Attributes:
        id: Database id of the file
        file_name: Original name of the uploaded file
        file_size: Size in bytes
        mime_type: MIME type reported on upload
        upload_status: inProgress or successful
        bucket_id: Bucket the file is embedded in, if any
        user_id: Owner of the file, if any
        created_at: Upload timestamp
    """

    id: int
    file_name: str
    file_size: int
    mime_type: str
    upload_status: str
    bucket_id: Optional[int] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "mimeType": self.mime_type,
            "uploadStatus": self.upload_status,
            "bucketId": self.bucket_id,
            "userId": self.user_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


def build_file(entity: File) -> UploadedFile:
    """Map a file row to its API representation."""
    return UploadedFile(
        id=entity.id,
        file_name=entity.file_name,
        file_size=entity.file_size,
        mime_type=entity.mime_type,
        upload_status=entity.upload_status,
        bucket_id=entity.bucket_id,
        user_id=entity.user_id,
        created_at=entity.created_at,
    )
