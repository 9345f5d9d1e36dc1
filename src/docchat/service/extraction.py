"""PDF text extraction and retrieval of PDFs by URL."""

import logging

import fitz  # PyMuPDF
import requests

from docchat.constants import DEFAULT_FETCH_TIMEOUT, MAX_UPLOAD_SIZE_BYTES
from docchat.errors import ExtractionError

logger = logging.getLogger(__name__)


def extract_text_from_pdf_bytes(pdf_bytes: bytes) -> str:
    """Extract all text from an in-memory PDF.

    Pages are joined with a blank line so page boundaries survive chunking.

    Args:
        pdf_bytes: Raw PDF file content

    Returns:
        str: Concatenated text from all pages

    Raises:
        ExtractionError: If the bytes are not a readable PDF
    """
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise ExtractionError(
            f"Could not open PDF: {type(e).__name__}: {e}", stage="extract"
        ) from e

    try:
        pages = [page.get_text() for page in doc]
    except Exception as e:
        raise ExtractionError(
            f"Could not read PDF text: {type(e).__name__}: {e}", stage="extract"
        ) from e
    finally:
        doc.close()

    text = "\n\n".join(page.strip() for page in pages if page.strip())
    logger.info(f"📄 Extracted {len(text)} characters from {len(pages)} page(s)")
    return text


def fetch_pdf_bytes(
    url: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_bytes: int = MAX_UPLOAD_SIZE_BYTES,
) -> bytes:
    """Download a PDF from blob storage or any HTTP(S) URL.

    Args:
        url: Location of the PDF
        timeout: Request timeout in seconds
        max_bytes: Largest accepted response body

    Returns:
        bytes: The downloaded file content

    Raises:
        ExtractionError: If the download fails or the file is too large
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ExtractionError(f"Could not fetch PDF from {url}: {e}", stage="fetch") from e

    content = response.content
    if len(content) > max_bytes:
        raise ExtractionError(
            f"PDF at {url} is {len(content)} bytes, larger than the {max_bytes} byte limit",
            stage="fetch",
        )
    logger.info(f"📥 Fetched {len(content)} bytes from {url}")
    return content
