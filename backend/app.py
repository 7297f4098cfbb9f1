"""Flask application serving the assistant platform API."""

import argparse
import logging
import os
import sys
from typing import Optional

from flask import Flask
from flask_cors import CORS

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.conf.config import Config
from backend.src.api.core import setup_api
from backend.src.database import SessionFactory
from backend.src.services import create_services

# Logging is configured in backend/__init__.py
logger = logging.getLogger(__name__)


def create_app(session_factory: Optional[SessionFactory] = None) -> Flask:
    """Create and configure the Flask application with its services.

    Args:
        session_factory: Database sessions to use. If None, the configured
            database is used
    """
    logger.info("Starting application setup...")

    # Create Flask app
    app = Flask(__name__)
    CORS(app, origins=Config.CORS_ORIGINS)

    # Create services using factory methods
    services = create_services(session_factory)
    app.extensions["services"] = services

    # Set up API routes
    logger.info("Setting up API routes")
    setup_api(app, services)
    logger.info("API routes configured")

    logger.info("Application setup complete")
    return app


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Run the assistant backend (--port, --database-url, --locale)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=Config.FLASK_PORT,
        help=f"Port of the API server (default: {Config.FLASK_PORT})",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=Config.DATABASE_URL,
        help="SQLAlchemy database URL",
    )
    parser.add_argument(
        "--locale",
        type=str,
        default=Config.LOCALE,
        help=f"Locale of user-facing messages (default: {Config.LOCALE})",
    )

    args = parser.parse_args()

    # Set configuration from command line arguments
    Config.FLASK_PORT = args.port
    Config.DATABASE_URL = args.database_url
    Config.LOCALE = args.locale

    logger.info(f"Using database: {Config.DATABASE_URL}")
    logger.info(f"Using locale: {Config.LOCALE}")

    # Create app and run
    app = create_app()
    app.run(host=Config.FLASK_HOST, port=Config.FLASK_PORT, threaded=True)
