"""Core API setup and configuration.

This module configures API middleware, error handling, and other global API components.
"""

import logging

from flask import Flask

from backend.src.api.endpoints import register_endpoints
from backend.src.api.middleware import register_middleware
from backend.src.services import Services

logger = logging.getLogger(__name__)


def setup_api(app: Flask, services: Services) -> None:
    """Set up API with middleware and endpoints.

    Args:
        app: Flask application
        services: Services used by the endpoints
    """
    # Register middleware
    register_middleware(app)

    # Register endpoints
    register_endpoints(app, services)
