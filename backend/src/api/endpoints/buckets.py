"""Bucket administration endpoints module."""

import logging
from typing import Dict, List, Optional, Tuple

from flask import Blueprint, Response, jsonify
from flask_pydantic import validate  # type: ignore
from pydantic import BaseModel, ConfigDict, Field

from backend.src.api.utils.auth import require_admin
from backend.src.database import BucketType, SessionFactory
from backend.src.services.files import BucketService, bucket_to_json

logger = logging.getLogger(__name__)


# Schema definitions
class BucketUpdateRequest(BaseModel):
    """Bucket fields; omitted fields keep their value."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    endpoint: Optional[str] = None
    index_name: Optional[str] = Field(None, alias="indexName")
    headers: Optional[Dict[str, str]] = None
    is_default: Optional[bool] = Field(None, alias="isDefault")
    per_user_quota: Optional[int] = Field(None, ge=0, alias="perUserQuota")
    allowed_file_name_extensions: Optional[List[str]] = Field(
        None, alias="allowedFileNameExtensions"
    )
    file_size_limits: Optional[Dict[str, float]] = Field(None, alias="fileSizeLimits")
    type: Optional[BucketType] = None

    def to_values(self) -> Dict:
        values = self.model_dump(exclude_unset=True)
        if self.type is not None:
            values["type"] = self.type.value
        return values


class BucketCreateRequest(BucketUpdateRequest):
    name: str
    endpoint: str


def init_buckets_routes(session_factory: SessionFactory, bucket_service: BucketService) -> Blueprint:
    """Initialize bucket routes, available to administrators only.

    Args:
        session_factory: Database sessions, used to resolve the current user
        bucket_service: Service for bucket operations

    Returns:
        Blueprint: Flask blueprint with configured bucket routes.
    """
    buckets_bp = Blueprint("buckets", __name__)

    @buckets_bp.route("/buckets", methods=["GET"])
    def get_buckets() -> Tuple[Response, int]:
        require_admin(session_factory)

        buckets = bucket_service.get_buckets()
        return jsonify({"items": [bucket_to_json(b) for b in buckets]}), 200

    @buckets_bp.route("/buckets/<int:bucket_id>", methods=["GET"])
    def get_bucket(bucket_id: int) -> Tuple[Response, int]:
        require_admin(session_factory)

        return jsonify(bucket_to_json(bucket_service.get_bucket(bucket_id))), 200

    @buckets_bp.route("/buckets", methods=["POST"])
    @validate()
    def create_bucket(body: BucketCreateRequest) -> Tuple[Response, int]:  # type: ignore
        require_admin(session_factory)

        bucket = bucket_service.create_bucket(body.to_values())
        return jsonify(bucket_to_json(bucket)), 201

    @buckets_bp.route("/buckets/<int:bucket_id>", methods=["PUT"])
    @validate()
    def update_bucket(bucket_id: int, body: BucketUpdateRequest) -> Tuple[Response, int]:  # type: ignore
        require_admin(session_factory)

        bucket = bucket_service.update_bucket(bucket_id, body.to_values())
        return jsonify(bucket_to_json(bucket)), 200

    @buckets_bp.route("/buckets/<int:bucket_id>", methods=["DELETE"])
    def delete_bucket(bucket_id: int) -> Tuple[Response, int]:
        require_admin(session_factory)

        bucket_service.delete_bucket(bucket_id)
        return jsonify({}), 200

    @buckets_bp.route("/buckets/test", methods=["POST"])
    @validate()
    def test_bucket(body: BucketCreateRequest) -> Tuple[Response, int]:  # type: ignore
        """Check a bucket configuration against its retrieval service before saving it."""
        require_admin(session_factory)

        return jsonify(bucket_service.test_bucket(body.to_values())), 200

    return buckets_bp
