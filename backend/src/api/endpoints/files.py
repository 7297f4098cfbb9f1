"""File endpoints module.

This module provides Flask routes to upload, list and delete files, either
attached directly to a conversation or stored in a bucket.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, jsonify, request
from flask_pydantic import validate  # type: ignore
from pydantic import BaseModel, ConfigDict, Field

from backend.conf.config import Config
from backend.src.api.middleware.exceptions import ForbiddenError, ValidationError
from backend.src.api.utils.auth import get_current_user
from backend.src.database import BucketType, SessionFactory
from backend.src.services.files import EmbedType, FileService, UploadFileParams

logger = logging.getLogger(__name__)


# Schema definitions
class UploadForm(BaseModel):
    """Form fields sent along with an uploaded file."""

    model_config = ConfigDict(populate_by_name=True)

    embed_type: Optional[EmbedType] = Field(None, alias="embedType")
    conversation_id: Optional[int] = Field(None, alias="conversationId")
    file_id_to_update: Optional[int] = Field(None, alias="fileIdToUpdate")


class FilesQuery(BaseModel):
    """Query parameters for listing files."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(0, ge=0, description="Zero based page index")
    page_size: int = Field(
        Config.DEFAULT_PAGE_SIZE, ge=1, le=Config.MAX_PAGE_SIZE, alias="pageSize"
    )
    conversation_id: Optional[int] = Field(None, alias="conversationId")
    query: Optional[str] = Field(None, description="File name filter")


def _read_upload(default_embed_type: EmbedType) -> Tuple[UploadForm, Dict[str, Any]]:
    """Read the multipart file of the current request."""
    uploaded = request.files.get("file")
    if uploaded is None or not uploaded.filename:
        raise ValidationError(message="No file uploaded", details="Expected a 'file' field")

    form = UploadForm.model_validate(request.form.to_dict())
    if form.embed_type is None:
        form.embed_type = default_embed_type

    buffer = uploaded.read()
    return form, {
        "buffer": buffer,
        "file_name": uploaded.filename,
        "file_size": len(buffer),
        "mime_type": uploaded.mimetype or "application/octet-stream",
    }


def _parse_bucket(bucket_id_or_type: str) -> Any:
    return int(bucket_id_or_type) if bucket_id_or_type.isdigit() else bucket_id_or_type


def init_files_routes(session_factory: SessionFactory, file_service: FileService) -> Blueprint:
    """Initialize file routes with the provided services.

    Args:
        session_factory: Database sessions, used to resolve the current user
        file_service: Service for file operations

    Returns:
        Blueprint: Flask blueprint with configured file routes.
    """
    files_bp = Blueprint("files", __name__)

    @files_bp.route("/files", methods=["POST"])
    def upload_file() -> Tuple[Response, int]:
        """Store a file without bucket, e.g. an image attached to a message."""
        user = get_current_user(session_factory)
        form, upload = _read_upload(EmbedType.NONE)

        uploaded_file = file_service.upload_file(
            UploadFileParams(
                embed_type=form.embed_type,
                user=user,
                conversation_id=form.conversation_id,
                **upload,
            )
        )
        return jsonify(uploaded_file.to_json()), 201

    @files_bp.route("/buckets/<int:bucket_id>/files", methods=["POST"])
    def upload_bucket_file(bucket_id: int) -> Tuple[Response, int]:
        """Store a file in a bucket.

        General buckets take no user; user and conversation buckets are
        uploaded to by the current user.
        """
        user = get_current_user(session_factory)
        form, upload = _read_upload(EmbedType.VECTOR)

        is_general = file_service.get_bucket(bucket_id).type == BucketType.GENERAL
        if is_general and not user.is_admin:
            raise ForbiddenError(message="Only administrators may upload shared files")

        uploaded_file = file_service.upload_file(
            UploadFileParams(
                embed_type=form.embed_type,
                user=None if is_general else user,
                bucket_id=bucket_id,
                conversation_id=form.conversation_id,
                file_id_to_update=form.file_id_to_update,
                **upload,
            )
        )
        return jsonify(uploaded_file.to_json()), 201

    @files_bp.route("/buckets/<bucket_id_or_type>/files", methods=["GET"])
    @validate()
    def get_files(bucket_id_or_type: str, query: FilesQuery) -> Tuple[Response, int]:  # type: ignore
        """List the files of a bucket, by id or by type (general, user, conversation)."""
        user = get_current_user(session_factory)

        result = file_service.get_files(
            user,
            _parse_bucket(bucket_id_or_type),
            page=query.page,
            page_size=query.page_size,
            conversation_id=query.conversation_id,
            search_query=query.query,
        )
        return jsonify({"items": [f.to_json() for f in result.files], "total": result.total}), 200

    @files_bp.route("/buckets/<int:bucket_id>/files/types", methods=["GET"])
    def get_file_types(bucket_id: int) -> Tuple[Response, int]:
        get_current_user(session_factory)

        file_types = file_service.get_file_types(bucket_id)
        return jsonify({"items": [ft.to_json() for ft in file_types]}), 200

    @files_bp.route("/buckets/<int:bucket_id>/files/<int:file_id>", methods=["DELETE"])
    def delete_file(bucket_id: int, file_id: int) -> Tuple[Response, int]:
        user = get_current_user(session_factory)

        file_service.delete_file(user, bucket_id, file_id)
        return jsonify({}), 200

    return files_bp
