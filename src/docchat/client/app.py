"""Flask web application for chatting with uploaded PDF documents.

This module provides the REST API for ingesting a user's PDFs and answering
questions from them using Retrieval-Augmented Generation (RAG). The pipelines
are built once at startup and shared by all routes.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from docchat.client.routes import (
    documents_bp,
    health_bp,
    history_bp,
    ingest_bp,
    init_config,
    query_bp,
)
from docchat.constants import MAX_UPLOAD_SIZE_BYTES
from docchat.service.factory import build_services

# Configure logging
log_level = os.getenv("LOG_LEVEL", "DEBUG")
logging.basicConfig(
    level=getattr(logging, log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()
logger.debug("Environment variables loaded")

# Create Flask app
app = Flask(__name__)
logger.debug("Flask app created")

# Configure upload settings
UPLOAD_FOLDER = Path(os.getenv("UPLOAD_FOLDER", "/tmp/docchat_uploads"))
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_SIZE_BYTES

# Register blueprints
app.register_blueprint(ingest_bp)
app.register_blueprint(query_bp)
app.register_blueprint(documents_bp)
app.register_blueprint(history_bp)
app.register_blueprint(health_bp)


def initialize_services(config: dict | None = None) -> None:
    """Build the pipelines and hand them to the routes.

    Args:
        config: Optional configuration passed to build_services
    """
    logger.info("🔧 Initializing services...")

    services = build_services(config)

    # Ensure upload folder exists
    UPLOAD_FOLDER.mkdir(parents=True, exist_ok=True)

    init_config(
        ingestion=services.ingestion,
        retrieval=services.retrieval,
        documents=services.documents,
        history=services.history,
        upload_folder=UPLOAD_FOLDER,
    )
    logger.info("✅ Services initialized successfully")


def create_app(config: dict | None = None) -> Flask:
    """Factory function for creating the Flask application.

    This function is used by WSGI servers like gunicorn to create the app.
    It initializes services before returning the app instance.

    Returns:
        Flask: The configured Flask application instance
    """
    initialize_services(config)
    return app


def main() -> None:
    """Entry point for the Flask application command-line interface."""
    print("🚀 Starting DocChat Flask application...")

    print("📦 Initializing services...")
    initialize_services()

    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", "5000"))
    debug = os.getenv("FLASK_ENV", "development") == "development"

    print(f"🌐 Starting Flask server on http://{host}:{port}")
    print(f"🔧 Debug mode: {debug}")
    print("📝 Press CTRL+C to quit")

    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
