"""File validation rules for uploads and processing"""

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Iterable, List, Optional, Tuple

from fieldservice.rag.text_extraction import can_extract_text

MB = 1024 * 1024

IMAGE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
)

DOCUMENT_TYPES = (
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/csv",
)

ALL_ALLOWED_TYPES = IMAGE_TYPES + DOCUMENT_TYPES

IMAGE_SIZE_LIMIT = 10 * MB
DOCUMENT_SIZE_LIMIT = 50 * MB
DEFAULT_SIZE_LIMIT = 50 * MB
LARGE_FILE_WARNING_SIZE = 25 * MB
DEFAULT_MAX_FILES = 10

DANGEROUS_EXTENSIONS = {".exe", ".bat", ".cmd", ".scr", ".pif", ".com"}


@dataclass
class FileValidationResult:
    is_valid: bool
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


def is_image_file(mime_type: str) -> bool:
    return mime_type in IMAGE_TYPES


def is_document_file(mime_type: str) -> bool:
    return mime_type in DOCUMENT_TYPES


def get_file_size_limit(mime_type: str) -> int:
    """Size limit in bytes for a MIME type"""
    if is_image_file(mime_type):
        return IMAGE_SIZE_LIMIT
    if is_document_file(mime_type):
        return DOCUMENT_SIZE_LIMIT
    return DEFAULT_SIZE_LIMIT


def format_file_size(size: int) -> str:
    """Human readable size, e.g. 1.5 MB"""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    value = round(value, 1)
    if value == int(value):
        value = int(value)
    return f"{value} {units[i]}"


def get_file_extension(filename: str) -> str:
    return PurePath(filename).suffix.lower()


def can_process_file_type(mime_type: Optional[str]) -> bool:
    """Whether a file of this type can be chunked and embedded"""
    return can_extract_text(mime_type)


def estimate_processing_time(file_size: int, mime_type: str) -> float:
    """Rough processing time in seconds"""
    seconds = 5 + (file_size / MB) * 2
    if "pdf" in mime_type:
        seconds *= 2
    elif "document" in mime_type or "excel" in mime_type:
        seconds *= 1.5
    return max(seconds, 5)


def validate_file(
    filename: str,
    size: int,
    mime_type: str,
    max_file_size: Optional[int] = None,
    allowed_types: Optional[Iterable[str]] = None
) -> FileValidationResult:
    """
    Validate a single file

    Args:
        filename: Original file name
        size: Size in bytes
        mime_type: Declared MIME type
        max_file_size: Size limit in bytes (default: 50 MB)
        allowed_types: Accepted MIME types (default: ALL_ALLOWED_TYPES)

    Returns:
        FileValidationResult; large but valid files carry a warning
    """
    max_file_size = DEFAULT_SIZE_LIMIT if max_file_size is None else max_file_size
    allowed_types = ALL_ALLOWED_TYPES if allowed_types is None else tuple(allowed_types)

    if size > max_file_size:
        return FileValidationResult(
            is_valid=False,
            error=f'File "{filename}" is too large. Maximum size is {format_file_size(max_file_size)}'
        )

    if mime_type not in allowed_types:
        return FileValidationResult(
            is_valid=False,
            error=f'File type "{mime_type}" is not supported for "{filename}"'
        )

    extension = get_file_extension(filename)
    if extension in DANGEROUS_EXTENSIONS:
        return FileValidationResult(
            is_valid=False,
            error=f'File extension "{extension}" is not allowed for security reasons'
        )

    warnings = []
    if size > LARGE_FILE_WARNING_SIZE:
        warnings.append(f'Large file "{filename}" may take longer to upload and process')

    return FileValidationResult(is_valid=True, warnings=warnings)


def validate_files(
    files: List[Tuple[str, int, str]],
    max_files: int = DEFAULT_MAX_FILES,
    existing_file_count: int = 0,
    **options
) -> FileValidationResult:
    """
    Validate a set of (filename, size, mime_type) tuples

    All errors are reported together, joined by "; ".
    """
    if len(files) + existing_file_count > max_files:
        return FileValidationResult(
            is_valid=False,
            error=f"Too many files. Maximum {max_files} files allowed (currently have {existing_file_count})"
        )

    errors = []
    warnings = []
    for filename, size, mime_type in files:
        result = validate_file(filename, size, mime_type, **options)
        if not result.is_valid:
            errors.append(result.error)
        warnings.extend(result.warnings)

    if errors:
        return FileValidationResult(is_valid=False, error="; ".join(errors))
    return FileValidationResult(is_valid=True, warnings=warnings)
