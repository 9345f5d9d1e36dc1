"""Health check API route."""

from flask import Blueprint, jsonify

from docchat.client.routes.config import get_config

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint.

    Returns:
        JSON with service status
    """
    config = get_config()
    return jsonify(
        {
            "status": "healthy",
            "ingestion": "initialized" if config.ingestion else "not initialized",
            "retrieval": "initialized" if config.retrieval else "not initialized",
        }
    )
