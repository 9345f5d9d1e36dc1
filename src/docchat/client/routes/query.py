"""Question answering API route."""

import logging

from flask import Blueprint, jsonify, request

from docchat.client.routes.config import get_config
from docchat.client.routes.errors import error_response, require_param
from docchat.errors import ValidationError
from docchat.service.async_helpers import run_async
from docchat.service.retrieval import validate_prior_messages

logger = logging.getLogger(__name__)

query_bp = Blueprint("query", __name__)


@query_bp.route("/api/query", methods=["POST"])
def query():
    """Answer a question from the user's documents.

    Request:
        {
            "question": "What does the report conclude?",
            "userId": "u1",
            "topK": 5,  # Optional, default 5, max 20
            "modelId": "llama3",  # Optional completion model
            "priorMessages": [  # Optional conversation history
                {"role": "user", "content": "Previous question"},
                {"role": "assistant", "content": "Previous answer"}
            ],
            "useHistory": false,  # Use stored history when priorMessages is absent
            "saveHistory": true  # Store this exchange
        }

    Response:
        {
            "answerText": "The report concludes...",
            "sources": ["Document-1a2b3c4d"],
            "status": "answered"
        }

    Empty retrieval and generation failures are returned with status 200 and
    their fixed answer text.
    """
    config = get_config()
    logger.info("📨 Received query request")
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        question = require_param(data.get("question"), "question")
        user_id = require_param(data.get("userId"), "userId")
        top_k = data.get("topK")
        model_id = data.get("modelId") or None
        prior_messages = data.get("priorMessages")
        validate_prior_messages(prior_messages)
        if prior_messages is None and data.get("useHistory", False):
            prior_messages = config.history.prior_turns(user_id)

        answer = run_async(
            config.retrieval.answer(
                question,
                user_id,
                top_k=top_k,
                model=model_id,
                prior_messages=prior_messages,
            )
        )

        if data.get("saveHistory", True):
            try:
                config.history.record_exchange(user_id, question, answer)
            except Exception as e:
                logger.warning(f"⚠️ Could not save chat history for user {user_id}: {e}")
    except Exception as e:
        return error_response(e)

    logger.info(f"✅ Query for user {user_id} finished with status '{answer.status}'")
    return jsonify({"answerText": answer.text, "sources": answer.sources, "status": answer.status})
