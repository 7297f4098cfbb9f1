"""API endpoints package.

This package contains endpoint definitions for the API.
"""

from flask import Flask

from backend.src.api.endpoints.buckets import init_buckets_routes
from backend.src.api.endpoints.chat import init_chat_routes
from backend.src.api.endpoints.configurations import init_configurations_routes
from backend.src.api.endpoints.conversations import init_conversations_routes
from backend.src.api.endpoints.files import init_files_routes
from backend.src.services import Services


def register_endpoints(app: Flask, services: Services) -> None:
    """Register all API endpoints with the application.

    Args:
        app: Flask application
        services: Services used by the endpoints
    """
    session_factory = services.session_factory

    app.register_blueprint(init_chat_routes(session_factory, services.chat_service))
    app.register_blueprint(
        init_conversations_routes(
            session_factory,
            services.conversation_service,
            services.document_content_service,
        )
    )
    app.register_blueprint(
        init_configurations_routes(session_factory, services.extension_service)
    )
    app.register_blueprint(init_files_routes(session_factory, services.file_service))
    app.register_blueprint(init_buckets_routes(session_factory, services.bucket_service))
