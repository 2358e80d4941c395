"""Text extraction for uploaded files"""

from pathlib import Path
from typing import Union
import json
import logging
import re

import PyPDF2
import docx

from fieldservice.exceptions import ValidationException

logger = logging.getLogger(__name__)

PLAIN_TEXT_TYPES = {"text/plain", "text/csv", "text/markdown"}
HTML_TYPE = "text/html"
JSON_TYPE = "application/json"
PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

EXTRACTABLE_TYPES = PLAIN_TEXT_TYPES | {HTML_TYPE, JSON_TYPE, PDF_TYPE, DOCX_TYPE}

_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_RE = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def can_extract_text(mime_type: str) -> bool:
    """Check if text can be extracted from a MIME type"""
    return (mime_type or "") in EXTRACTABLE_TYPES


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _read_pdf(file_path: Path) -> str:
    """Extract text from PDF"""
    text = []
    with open(file_path, 'rb') as file:
        pdf_reader = PyPDF2.PdfReader(file)
        for page in pdf_reader.pages:
            text.append(page.extract_text() or "")
    return '\n'.join(text)


def _read_docx(file_path: Path) -> str:
    """Extract text from DOCX"""
    doc = docx.Document(file_path)
    return '\n'.join(paragraph.text for paragraph in doc.paragraphs)


def html_to_text(html: str) -> str:
    """Strip tags and collapse whitespace"""
    html = _SCRIPT_RE.sub(" ", html)
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def extract_text(file_path: Union[str, Path], mime_type: str) -> str:
    """
    Extract text content from a stored file

    Args:
        file_path: Path to file on disk
        mime_type: MIME type recorded at upload

    Returns:
        Extracted text content

    Raises:
        ValidationException: If the type is not extractable
    """
    file_path = Path(file_path)
    mime_type = mime_type or ""

    if mime_type == PDF_TYPE:
        text = _read_pdf(file_path)
    elif mime_type == DOCX_TYPE:
        text = _read_docx(file_path)
    elif mime_type in PLAIN_TEXT_TYPES:
        text = _decode(file_path.read_bytes())
    elif mime_type == HTML_TYPE:
        text = html_to_text(_decode(file_path.read_bytes()))
    elif mime_type == JSON_TYPE:
        raw = _decode(file_path.read_bytes())
        try:
            text = json.dumps(json.loads(raw), indent=2, ensure_ascii=False)
        except json.JSONDecodeError:
            text = raw
    else:
        raise ValidationException(f"Unsupported file type: {mime_type or 'unknown'}")

    logger.info(f"Extracted {len(text)} characters from {file_path.name}")
    return text
