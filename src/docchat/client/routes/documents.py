"""Document listing and deletion API routes."""

import logging

from flask import Blueprint, jsonify, request

from docchat.client.routes.config import get_config
from docchat.client.routes.errors import error_response, require_param

logger = logging.getLogger(__name__)

documents_bp = Blueprint("documents", __name__)


@documents_bp.route("/api/documents", methods=["GET"])
def list_documents():
    """List the user's documents, newest first.

    Query parameters:
        userId: Owning user (required)
    """
    try:
        user_id = require_param(request.args.get("userId"), "userId")
        documents = get_config().documents.list_documents(user_id)
    except Exception as e:
        return error_response(e)

    logger.info(f"📂 Listed {len(documents)} documents for user {user_id}")
    return jsonify(
        {
            "documents": [
                {
                    "documentId": doc.id,
                    "name": doc.name,
                    "sourceUrl": doc.source_url,
                    "chunkCount": doc.chunk_count,
                    "createdAt": doc.created_at,
                }
                for doc in documents
            ]
        }
    )


@documents_bp.route("/api/documents/<document_id>", methods=["DELETE"])
def delete_document(document_id: str):
    """Delete a document and its chunks.

    Query parameters:
        userId: Owning user (required); other users' documents return 404
    """
    try:
        user_id = require_param(request.args.get("userId"), "userId")
        removed = get_config().documents.delete_document(document_id, user_id)
    except Exception as e:
        return error_response(e)

    return jsonify({"documentId": document_id, "deleted": True, "chunksRemoved": removed})
