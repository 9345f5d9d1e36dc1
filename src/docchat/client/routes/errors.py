"""Mapping from pipeline errors to JSON responses."""

import logging

from flask import jsonify

from docchat.errors import DocChatError, DocumentNotFoundError, ValidationError

logger = logging.getLogger(__name__)


def error_response(error: Exception):
    """Build the (response, status) pair for an exception raised by a route.

    ValidationError maps to 400, DocumentNotFoundError to 404 and every other
    DocChatError to 500 with its category. Anything else is a generic 500.
    """
    if isinstance(error, ValidationError):
        logger.warning(f"❌ Invalid request: {error}")
        return jsonify(error.to_dict()), 400
    if isinstance(error, DocumentNotFoundError):
        logger.warning(f"❌ {error}")
        return jsonify(error.to_dict()), 404
    if isinstance(error, DocChatError):
        logger.error(
            f"❌ {error.category} at stage '{error.stage}' "
            f"(document={error.document_id}, user={error.user_id}): {error}"
        )
        return jsonify(error.to_dict()), 500
    logger.error(f"❌ Unexpected error: {type(error).__name__}: {error}", exc_info=True)
    return jsonify({"error": "internal_error", "message": "Internal server error"}), 500


def require_param(value, name: str) -> str:
    """Return a non-blank string parameter or raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required")
    return value.strip()
