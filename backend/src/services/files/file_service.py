"""Service for uploading, listing, searching and deleting files.

Files either live in the database only (raw uploads without a bucket, e.g.
images attached to a chat message) or are stored in a bucket whose
retrieval service embeds them into a vector store and/or extracts their text.
"""

import base64
import json
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Union

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from backend.conf.config import Config
from backend.src.api.middleware.exceptions import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
)
from backend.src.data_classes import Source, UploadedFile, build_file
from backend.src.database import (
    Blob,
    BlobCategory,
    Bucket,
    BucketType,
    ConversationFile,
    File,
    FileUploadStatus,
    SessionFactory,
    User,
)
from backend.src.services.files.files_api import FilesApi, FileType, ResponseError
from backend.src.services.files.utils import (
    build_client,
    get_bucket_path,
    is_file_size_within_limits,
    match_extension,
    open_client,
)
from backend.src.services.localization import I18nService

logger = logging.getLogger(__name__)

PROCESSED_BLOB_TYPE = "application/reis+processed"

# Localized error per status code reported by the retrieval service
UPLOAD_ERROR_TEXTS = {
    400: "texts.extensions.files.errorUploadingFileDamaged",
    413: "texts.extensions.files.errorFileTooLarge",
    415: "texts.extensions.files.errorNotSupportedFileType",
    422: "texts.extensions.files.errorUploadingREISConfiguration",
}


class EmbedType(str, Enum):
    """How an uploaded file is processed.

    vector: the document is added to the vector store
    text: the text of the document is extracted and stored in the database
    vector_and_text: both of the above
    none: the document is stored as a complete file (e.g. an image)
    """

    VECTOR = "vector"
    TEXT = "text"
    VECTOR_AND_TEXT = "vector_and_text"
    NONE = "none"


@dataclass
class UploadFileParams:
    """Parameters of a single upload.

    Attributes:
        buffer: File content
        mime_type: MIME type reported by the client
        file_name: Original file name
        file_size: Size in bytes
        embed_type: How the file is processed, see EmbedType
        user: Uploading user, required for user and conversation buckets
        bucket_id: Target bucket, None for raw storage
        conversation_id: Conversation the file is attached to
        file_id_to_update: Existing file in the bucket to replace
    """

    buffer: bytes
    mime_type: str
    file_name: str
    file_size: int
    embed_type: EmbedType = EmbedType.VECTOR
    user: Optional[User] = None
    bucket_id: Optional[int] = None
    conversation_id: Optional[int] = None
    file_id_to_update: Optional[int] = None


@dataclass
class FilesPage:
    """One page of files and the total number of matching files."""

    files: List[UploadedFile] = field(default_factory=list)
    total: int = 0


class FileService:
    """Business logic around files and their retrieval service.

    Attributes:
        session_factory: Factory for database sessions
        i18n: Translator for user-facing error messages
        client_factory: Creates the retrieval service client of a bucket
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        i18n: Optional[I18nService] = None,
        client_factory: Callable[[Bucket], FilesApi] = build_client,
    ) -> None:
        self.session_factory = session_factory
        self.i18n = i18n or I18nService()
        self.client_factory = client_factory

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload_file(self, params: UploadFileParams) -> UploadedFile:
        """Validate an upload against its bucket and store it.

        Args:
            params: Upload parameters

        Returns:
            The stored file

        Raises:
            BadRequestError: If the upload violates the bucket policy
            NotFoundError: If the bucket or the file to update does not exist
            ServiceError: If the retrieval service fails
        """
        if not params.bucket_id:
            return self._upload_without_bucket(params)

        with self.session_factory() as session:
            bucket = self._get_upload_bucket(session, params)
            with open_client(self.client_factory, bucket) as api:
                self._validate_file(session, api, bucket, params)
                return self._store_in_bucket(session, api, bucket, params)

    def _store_in_bucket(
        self, session: Session, api: FilesApi, bucket: Bucket, params: UploadFileParams
    ) -> UploadedFile:
        entity = self._init_file(session, api, params)

        entity.file_name = params.file_name
        entity.file_size = params.file_size
        entity.mime_type = params.mime_type
        if params.embed_type != EmbedType.NONE:
            entity.bucket_id = bucket.id
        entity.upload_status = FileUploadStatus.IN_PROGRESS.value
        if params.user:
            entity.user_id = params.user.id

        result: Optional[UploadedFile] = None
        try:
            session.add(entity)
            session.commit()
            result = build_file(entity)

            if params.embed_type in (EmbedType.VECTOR, EmbedType.VECTOR_AND_TEXT):
                api.upload_file(
                    params.file_name,
                    params.mime_type,
                    get_bucket_path(bucket, params.user, params.conversation_id),
                    str(entity.id),
                    bucket.index_name,
                    body=params.buffer,
                )
                entity.upload_status = FileUploadStatus.SUCCESSFUL.value
                session.commit()

            if params.embed_type in (EmbedType.VECTOR_AND_TEXT, EmbedType.TEXT):
                file_content = api.process_file(
                    params.file_name,
                    params.mime_type,
                    Config.PROCESS_FILE_CHUNK_SIZE,
                    body=params.buffer,
                )
                entity.blobs.clear()
                entity.blobs.append(
                    Blob(
                        id=str(uuid.uuid4()),
                        user_id=params.user.id if params.user else None,
                        type=PROCESSED_BLOB_TYPE,
                        buffer=base64.b64encode(
                            json.dumps(file_content).encode("utf-8")
                        ).decode("ascii"),
                        category=BlobCategory.FILE_PROCESSED.value,
                    )
                )
                entity.upload_status = FileUploadStatus.SUCCESSFUL.value
                session.commit()

            if params.conversation_id:
                session.add(
                    ConversationFile(conversation_id=params.conversation_id, file_id=entity.id)
                )
                session.commit()

            logger.info(f"Uploaded file {entity.id} ({params.file_name}) to bucket {bucket.id}")
            return build_file(entity)
        except Exception as e:
            session.rollback()
            if result is not None:
                self._delete_file_record(session, result.id)

            logger.error(f"Failed to upload file to the retrieval service: {str(e)}")
            raise ServiceError(message=self._translate_upload_error(e)) from e

    def _upload_without_bucket(self, params: UploadFileParams) -> UploadedFile:
        if params.embed_type != EmbedType.NONE:
            raise BadRequestError("not allowed to store non embedded files without bucket")

        user_id = params.user.id if params.user else None
        with self.session_factory() as session:
            entity = File(
                file_name=params.file_name,
                file_size=params.file_size,
                mime_type=params.mime_type,
                upload_status=FileUploadStatus.SUCCESSFUL.value,
                user_id=user_id,
            )
            entity.blobs.append(
                Blob(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    type=params.mime_type,
                    buffer=base64.b64encode(params.buffer).decode("ascii"),
                    category=BlobCategory.FILE_ORIGINAL.value,
                )
            )
            session.add(entity)
            session.flush()

            if params.conversation_id:
                session.add(
                    ConversationFile(conversation_id=params.conversation_id, file_id=entity.id)
                )

            session.commit()
            logger.info(f"Stored file {entity.id} ({params.file_name}) without bucket")
            return build_file(entity)

    def _get_upload_bucket(self, session: Session, params: UploadFileParams) -> Bucket:
        bucket = session.get(Bucket, params.bucket_id)
        if bucket is None:
            raise NotFoundError("No bucket configured.")

        user, conversation_id = params.user, params.conversation_id
        if bucket.type == BucketType.GENERAL and (user or conversation_id):
            raise BadRequestError("not allowed to store in general bucket")

        if bucket.type == BucketType.CONVERSATION and not user:
            raise BadRequestError("not allowed to store in conversation bucket")

        if bucket.type == BucketType.USER and (conversation_id or not user):
            raise BadRequestError("not allowed to store in user bucket")

        return bucket

    def _validate_file(
        self, session: Session, api: FilesApi, bucket: Bucket, params: UploadFileParams
    ) -> None:
        user = params.user
        file_types = api.get_file_types()
        file_name = params.file_name

        if any(match_extension(file_name, ext) for ext in Config.IMAGE_FILE_EXTENSIONS):
            raise BadRequestError(
                self.i18n.t("texts.extensions.files.errorNotSupportedFileTypeImage")
            )

        outdated = next(
            (ext for ext in Config.OUTDATED_FILE_EXTENSIONS if match_extension(file_name, ext)),
            None,
        )
        if outdated:
            raise BadRequestError(
                self.i18n.t("texts.extensions.files.errorOutdatedFileType", format=f"{outdated}x")
            )

        supported = next(
            (ft for ft in file_types if match_extension(file_name, ft.file_name_extension)),
            None,
        )
        if supported is None:
            raise BadRequestError(self.i18n.t("texts.extensions.files.errorNotSupportedFileType"))

        if (
            bucket.allowed_file_name_extensions
            and supported.file_name_extension not in bucket.allowed_file_name_extensions
        ):
            raise BadRequestError(self.i18n.t("texts.extensions.files.errorNotAllowedFileType"))

        if not is_file_size_within_limits(bucket, file_name, params.mime_type, params.file_size):
            raise BadRequestError(self.i18n.t("texts.extensions.files.errorFileTooLarge"))

        # Racy when several files are uploaded at once. Hard to exploit, so accepted.
        if user and bucket.type == BucketType.USER:
            quota = bucket.per_user_quota
            used = session.scalar(
                select(func.count())
                .select_from(File)
                .where(File.user_id == user.id, File.bucket_id == bucket.id)
            )
            if (used or 0) >= quota:
                raise BadRequestError(f"User quota of {quota} files exceeded.")

    def _init_file(self, session: Session, api: FilesApi, params: UploadFileParams) -> File:
        if not params.file_id_to_update:
            return File()

        existing = session.scalars(
            select(File).where(
                File.id == params.file_id_to_update, File.bucket_id == params.bucket_id
            )
        ).first()
        if existing is None:
            raise NotFoundError(
                f"File with id {params.file_id_to_update} not found in bucket {params.bucket_id}"
            )

        api.delete_file(str(existing.id))
        return existing

    def _delete_file_record(self, session: Session, file_id: int) -> None:
        created = session.get(File, file_id)
        if created is not None:
            session.delete(created)
            session.commit()

    def _translate_upload_error(self, error: Exception) -> str:
        key = "texts.extensions.files.errorUploadingFile"
        if isinstance(error, ResponseError):
            key = UPLOAD_ERROR_TEXTS.get(error.status, key)
        return self.i18n.t(key)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_files(
        self,
        user: User,
        bucket_id_or_type: Union[int, str],
        page: int = 0,
        page_size: int = Config.DEFAULT_PAGE_SIZE,
        conversation_id: Optional[int] = None,
        search_query: Optional[str] = None,
    ) -> FilesPage:
        """List the files of a bucket visible to a user, ascending by id.

        Args:
            user: Requesting user
            bucket_id_or_type: Bucket id, or a bucket type to use its bucket
            page: Zero based page index
            page_size: Files per page
            conversation_id: For conversation buckets, only files of this conversation
            search_query: Optional case insensitive file name filter

        Raises:
            NotFoundError: If no matching bucket exists
        """
        with self.session_factory() as session:
            bucket = self._find_bucket(session, bucket_id_or_type)
            if bucket is None:
                raise NotFoundError(f"Cannot find bucket {bucket_id_or_type}")

            if bucket.type == BucketType.GENERAL:
                conditions = [File.bucket_id == bucket.id]
            elif bucket.type == BucketType.CONVERSATION and conversation_id is not None:
                attached = select(ConversationFile.file_id).where(
                    ConversationFile.conversation_id == conversation_id
                )
                conditions = [File.user_id == user.id, File.id.in_(attached)]
            else:
                conditions = [File.user_id == user.id, File.bucket_id == bucket.id]

            if search_query:
                conditions.append(File.file_name.ilike(f"%{search_query}%"))

            total = session.scalar(select(func.count()).select_from(File).where(*conditions))
            files = session.scalars(
                select(File)
                .where(*conditions)
                .order_by(File.id.asc())
                .offset(page * page_size)
                .limit(page_size)
            ).all()

            return FilesPage(files=[build_file(f) for f in files], total=total or 0)

    def get_bucket(self, bucket_id: int) -> Bucket:
        with self.session_factory() as session:
            bucket = session.get(Bucket, bucket_id)
            if bucket is None:
                raise NotFoundError("No bucket configured.")
            return bucket

    def get_file_types(self, bucket_id: int) -> List[FileType]:
        """File types accepted by a bucket: supported by its service and allowed by it."""
        with self.session_factory() as session:
            bucket = session.get(Bucket, bucket_id)
            if bucket is None:
                raise NotFoundError(f"Cannot find bucket {bucket_id}")

        with open_client(self.client_factory, bucket) as api:
            file_types = api.get_file_types()
        if bucket.allowed_file_name_extensions:
            file_types = [
                ft
                for ft in file_types
                if ft.file_name_extension in bucket.allowed_file_name_extensions
            ]
        return file_types

    def delete_file(self, user: User, bucket_id: int, file_id: int) -> None:
        """Delete a file from its retrieval service and the database.

        Raises:
            NotFoundError: If the file is not in the bucket or not owned by the user
            ForbiddenError: If a non admin deletes from a general bucket
        """
        with self.session_factory() as session:
            entity = session.scalars(
                select(File).where(File.id == file_id, File.bucket_id == bucket_id)
            ).first()
            if entity is None or entity.bucket is None:
                raise NotFoundError(f"File with id {file_id} not found in bucket {bucket_id}")

            bucket = entity.bucket
            if bucket.type == BucketType.GENERAL:
                db_user = session.get(User, user.id)
                if db_user is None or not db_user.is_admin:
                    raise ForbiddenError("Only administrators may delete shared files")
            elif entity.user_id != user.id:
                raise NotFoundError(f"File with id {file_id} not found in bucket {bucket_id}")

            with open_client(self.client_factory, bucket) as api:
                api.delete_file(str(entity.id))
            session.delete(entity)
            session.commit()
            logger.info(f"Deleted file {file_id} from bucket {bucket_id}")

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_files(
        self,
        user: Optional[User],
        bucket_id: int,
        query: str,
        conversation_id: Optional[int] = None,
        take: int = Config.CHAT_MAX_SOURCES,
    ) -> List[Source]:
        """Search the embedded files of a bucket.

        The search is scoped to the same bucket path the files were uploaded
        to, so users only find their own files in user and conversation buckets.

        Args:
            user: Searching user, required for user and conversation buckets
            bucket_id: Bucket to search
            query: Search text
            conversation_id: Conversation whose files are searched, for conversation buckets
            take: Maximum number of results

        Raises:
            NotFoundError: If the bucket does not exist
            BadRequestError: If the scope of the bucket cannot be resolved
        """
        bucket = self.get_bucket(bucket_id)

        if bucket.type != BucketType.GENERAL and user is None:
            raise BadRequestError(f"A user is required to search bucket {bucket_id}")
        if bucket.type == BucketType.CONVERSATION and conversation_id is None:
            raise BadRequestError(f"A conversation is required to search bucket {bucket_id}")

        path = get_bucket_path(
            bucket,
            user if bucket.type != BucketType.GENERAL else None,
            conversation_id if bucket.type == BucketType.CONVERSATION else None,
        )
        with open_client(self.client_factory, bucket) as api:
            sources = api.search(query, path, bucket.index_name, take)

        logger.debug(f"Found {len(sources)} sources in bucket {bucket_id} ({path})")
        return sources

    def get_searchable_buckets(self, user: User, conversation_id: int) -> List[Bucket]:
        """Buckets holding embedded files of the user that a chat turn can search.

        These are user buckets with at least one uploaded file of the user and
        conversation buckets with a file attached to the conversation.
        """
        attached = select(ConversationFile.file_id).where(
            ConversationFile.conversation_id == conversation_id
        )
        with_files = select(File.bucket_id).where(
            File.user_id == user.id,
            File.upload_status == FileUploadStatus.SUCCESSFUL.value,
        )
        with self.session_factory() as session:
            return list(
                session.scalars(
                    select(Bucket)
                    .where(
                        or_(
                            and_(
                                Bucket.type == BucketType.USER.value,
                                Bucket.id.in_(with_files),
                            ),
                            and_(
                                Bucket.type == BucketType.CONVERSATION.value,
                                Bucket.id.in_(with_files.where(File.id.in_(attached))),
                            ),
                        )
                    )
                    .order_by(Bucket.id.asc())
                ).all()
            )

    @staticmethod
    def _find_bucket(session: Session, bucket_id_or_type: Union[int, str]) -> Optional[Bucket]:
        if isinstance(bucket_id_or_type, int):
            return session.get(Bucket, bucket_id_or_type)

        return session.scalars(
            select(Bucket)
            .where(Bucket.type == bucket_id_or_type)
            .order_by(Bucket.is_default.desc(), Bucket.id.asc())
        ).first()
