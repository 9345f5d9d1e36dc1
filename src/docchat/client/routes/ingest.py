"""Document ingestion API route."""

import logging
import uuid

from flask import Blueprint, jsonify, request
from werkzeug.utils import secure_filename

from docchat.client.routes.config import get_config
from docchat.client.routes.errors import error_response, require_param
from docchat.errors import ValidationError
from docchat.service.async_helpers import run_async

logger = logging.getLogger(__name__)

ingest_bp = Blueprint("ingest", __name__)


def allowed_file(filename: str) -> bool:
    """Check if the file extension is allowed.

    Args:
        filename: The filename to check

    Returns:
        True if extension is allowed, False otherwise
    """
    allowed_extensions = get_config().allowed_extensions
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed_extensions


def _read_upload(file) -> bytes:
    """Read an uploaded file, staging it in the upload folder when one is set."""
    upload_folder = get_config().upload_folder
    if upload_folder is None:
        return file.read()

    filepath = upload_folder / f"{uuid.uuid4().hex}-{secure_filename(file.filename)}"
    file.save(filepath)
    logger.debug(f"💾 Saved upload to {filepath}")
    try:
        return filepath.read_bytes()
    finally:
        filepath.unlink(missing_ok=True)


@ingest_bp.route("/api/ingest", methods=["POST"])
def ingest_document():
    """Ingest one PDF for a user.

    Accepts either multipart form data:
        - file: The PDF file
        - userId: Owning user
        - documentName: Optional display name (defaults to the filename)

    or a JSON body:
        {"fileUrl": "https://...", "userId": "u1", "documentName": "report.pdf"}

    Response (201):
        {"documentId": "...", "chunkCount": 3}
    """
    config = get_config()
    logger.info("📤 Received ingest request")
    try:
        if request.is_json:
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise ValidationError("Request body must be a JSON object")
            file_url = require_param(data.get("fileUrl"), "fileUrl")
            user_id = require_param(data.get("userId"), "userId")
            document_name = require_param(
                data.get("documentName") or file_url.rsplit("/", 1)[-1], "documentName"
            )
            result = run_async(config.ingestion.ingest_url(file_url, user_id, document_name))
        else:
            file = request.files.get("file")
            if file is None or file.filename == "":
                raise ValidationError("A PDF file is required")
            if not allowed_file(file.filename):
                raise ValidationError("File type not allowed. Only PDF files are accepted.")
            user_id = require_param(request.form.get("userId"), "userId")
            document_name = require_param(
                request.form.get("documentName") or file.filename, "documentName"
            )
            pdf_bytes = _read_upload(file)
            result = run_async(config.ingestion.ingest(pdf_bytes, user_id, document_name))
    except Exception as e:
        return error_response(e)

    logger.info(f"✅ Ingested document {result.document_id} ({result.chunk_count} chunks)")
    return jsonify({"documentId": result.document_id, "chunkCount": result.chunk_count}), 201
