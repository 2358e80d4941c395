"""Test file validation rules"""

from fieldservice.services.file_validation import (
    MB,
    can_process_file_type,
    estimate_processing_time,
    format_file_size,
    get_file_size_limit,
    is_document_file,
    is_image_file,
    validate_file,
    validate_files
)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def test_oversized_file_rejected():
    result = validate_file("manual.pdf", 60 * MB, PDF)
    assert result.is_valid is False
    assert "too large" in result.error
    assert "50 MB" in result.error


def test_large_file_valid_with_warning():
    result = validate_file("schematics.pdf", 30 * MB, PDF)
    assert result.is_valid is True
    assert result.error is None
    assert len(result.warnings) == 1
    assert "may take longer to upload and process" in result.warnings[0]


def test_small_file_valid_without_warnings():
    result = validate_file("site-photo.png", 2 * MB, "image/png")
    assert result.is_valid is True
    assert result.warnings == []


def test_unsupported_type_rejected():
    result = validate_file("install.sh", 1024, "application/x-sh")
    assert result.is_valid is False
    assert "not supported" in result.error


def test_dangerous_extension_rejected():
    result = validate_file("invoice.pdf.exe", 1024, PDF)
    assert result.is_valid is False
    assert ".exe" in result.error


def test_custom_limit_and_allowed_types():
    image_limit = get_file_size_limit("image/jpeg")
    result = validate_file("photo.jpg", 11 * MB, "image/jpeg", max_file_size=image_limit)
    assert result.is_valid is False
    assert "10 MB" in result.error

    result = validate_file("notes.txt", 100, "text/plain", allowed_types=["image/png"])
    assert result.is_valid is False


def test_size_limits_per_type():
    assert get_file_size_limit("image/webp") == 10 * MB
    assert get_file_size_limit(PDF) == 50 * MB
    assert get_file_size_limit("application/octet-stream") == 50 * MB


def test_validate_files_too_many():
    files = [(f"photo{i}.png", 1024, "image/png") for i in range(3)]
    result = validate_files(files, max_files=5, existing_file_count=3)
    assert result.is_valid is False
    assert "Too many files" in result.error


def test_validate_files_reports_every_error():
    files = [
        ("ok.txt", 100, "text/plain"),
        ("huge.pdf", 80 * MB, PDF),
        ("tool.exe", 100, "application/pdf"),
    ]
    result = validate_files(files)
    assert result.is_valid is False
    assert "huge.pdf" in result.error
    assert ".exe" in result.error
    assert result.error.count("; ") == 1


def test_validate_files_collects_warnings():
    result = validate_files([("a.pdf", 26 * MB, PDF), ("b.pdf", 27 * MB, PDF)])
    assert result.is_valid is True
    assert len(result.warnings) == 2


def test_format_file_size():
    assert format_file_size(0) == "0 B"
    assert format_file_size(512) == "512 B"
    assert format_file_size(1024) == "1 KB"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(50 * MB) == "50 MB"


def test_type_helpers():
    assert is_image_file("image/gif")
    assert not is_image_file(PDF)
    assert is_document_file("text/csv")
    assert not is_document_file("image/png")


def test_processable_types():
    assert can_process_file_type("text/plain")
    assert can_process_file_type("text/markdown")
    assert can_process_file_type(DOCX)
    assert can_process_file_type(PDF)
    assert not can_process_file_type("image/png")
    assert not can_process_file_type("application/vnd.ms-excel")
    assert not can_process_file_type(None)


def test_estimate_processing_time():
    assert estimate_processing_time(MB, PDF) == 14
    assert estimate_processing_time(0, "text/plain") == 5
