"""Tests for PDF text extraction and URL fetching."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from docchat.errors import ExtractionError
from docchat.service.extraction import extract_text_from_pdf_bytes, fetch_pdf_bytes

from conftest import make_pdf_bytes


class TestExtractTextFromPdfBytes:
    """Tests for extract_text_from_pdf_bytes."""

    def test_extracts_text_from_all_pages(self, sample_pdf_bytes):
        text = extract_text_from_pdf_bytes(sample_pdf_bytes)

        assert "Solar panels convert sunlight into electricity." in text
        assert "Wind turbines generate power from moving air." in text
        # Pages are separated by a blank line
        assert "\n\n" in text

    def test_blank_pdf_yields_empty_text(self):
        assert extract_text_from_pdf_bytes(make_pdf_bytes([""])) == ""

    def test_invalid_bytes_raise_extraction_error(self):
        with pytest.raises(ExtractionError) as exc_info:
            extract_text_from_pdf_bytes(b"this is not a pdf")
        assert exc_info.value.category == "extraction_failed"
        assert exc_info.value.stage == "extract"


class TestFetchPdfBytes:
    """Tests for fetch_pdf_bytes."""

    @patch("docchat.service.extraction.requests.get")
    def test_returns_content(self, mock_get):
        mock_response = MagicMock()
        mock_response.content = b"%PDF-1.7 data"
        mock_get.return_value = mock_response

        content = fetch_pdf_bytes("https://blob.example.com/report.pdf", timeout=3)

        assert content == b"%PDF-1.7 data"
        mock_get.assert_called_once_with("https://blob.example.com/report.pdf", timeout=3)

    @patch("docchat.service.extraction.requests.get")
    def test_http_error_raises_extraction_error(self, mock_get):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        mock_get.return_value = mock_response

        with pytest.raises(ExtractionError, match="Could not fetch PDF"):
            fetch_pdf_bytes("https://blob.example.com/missing.pdf")

    @patch("docchat.service.extraction.requests.get")
    def test_connection_error_raises_extraction_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ExtractionError) as exc_info:
            fetch_pdf_bytes("https://blob.example.com/report.pdf")
        assert exc_info.value.stage == "fetch"

    @patch("docchat.service.extraction.requests.get")
    def test_oversized_body_rejected(self, mock_get):
        mock_response = MagicMock()
        mock_response.content = b"x" * 11
        mock_get.return_value = mock_response

        with pytest.raises(ExtractionError, match="larger than"):
            fetch_pdf_bytes("https://blob.example.com/big.pdf", max_bytes=10)
