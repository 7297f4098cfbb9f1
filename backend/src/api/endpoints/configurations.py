"""Assistant configuration endpoints module."""

import logging
from typing import Tuple

from flask import Blueprint, Response, jsonify
from flask_pydantic import validate  # type: ignore
from pydantic import BaseModel, ConfigDict, Field

from backend.src.api.utils.auth import get_current_user
from backend.src.database import SessionFactory
from backend.src.services.extensions import ExtensionService, configuration_to_json

logger = logging.getLogger(__name__)


class ConfigurationsQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = Field(False, description="Only list enabled assistants")


def init_configurations_routes(
    session_factory: SessionFactory, extension_service: ExtensionService
) -> Blueprint:
    """Initialize routes listing the assistants available to the current user.

    Args:
        session_factory: Database sessions, used to resolve the current user
        extension_service: Service resolving assistants and their extensions

    Returns:
        Blueprint: Flask blueprint with configured assistant routes.
    """
    configurations_bp = Blueprint("configurations", __name__)

    @configurations_bp.route("/configurations", methods=["GET"])
    @validate()
    def get_configurations(query: ConfigurationsQuery) -> Tuple[Response, int]:  # type: ignore
        user = get_current_user(session_factory)

        configurations = extension_service.get_configurations(user, enabled_only=query.enabled)
        return jsonify({"items": [configuration_to_json(c) for c in configurations]}), 200

    @configurations_bp.route("/configurations/<int:configuration_id>", methods=["GET"])
    def get_configuration(configuration_id: int) -> Tuple[Response, int]:
        user = get_current_user(session_factory)

        configuration = extension_service.get_configuration(user, configuration_id)
        return jsonify(configuration_to_json(configuration)), 200

    return configurations_bp
