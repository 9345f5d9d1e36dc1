"""Chat history API routes."""

import logging

from flask import Blueprint, jsonify, request

from docchat.client.routes.config import get_config
from docchat.client.routes.errors import error_response, require_param
from docchat.errors import ValidationError

logger = logging.getLogger(__name__)

history_bp = Blueprint("history", __name__)


def _parse_limit(raw: str | None) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        limit = int(raw)
    except ValueError as e:
        raise ValidationError("limit must be a positive integer") from e
    if limit <= 0:
        raise ValidationError("limit must be a positive integer")
    return limit


@history_bp.route("/api/chat-history", methods=["GET"])
def get_history():
    """Return the user's stored messages, oldest first.

    Query parameters:
        userId: Owning user (required)
        limit: Optional number of most recent messages
    """
    try:
        user_id = require_param(request.args.get("userId"), "userId")
        limit = _parse_limit(request.args.get("limit"))
        messages = get_config().history.list_messages(user_id, limit)
    except Exception as e:
        return error_response(e)

    return jsonify(
        {
            "messages": [
                {
                    "id": msg.id,
                    "role": msg.role,
                    "content": msg.content,
                    "sources": msg.sources,
                    "createdAt": msg.created_at,
                }
                for msg in messages
            ]
        }
    )


@history_bp.route("/api/chat-history", methods=["DELETE"])
def clear_history():
    """Delete all of the user's stored messages."""
    try:
        user_id = require_param(request.args.get("userId"), "userId")
        removed = get_config().history.clear(user_id)
    except Exception as e:
        return error_response(e)

    logger.info(f"🧹 Cleared {removed} messages for user {user_id}")
    return jsonify({"deleted": removed})
