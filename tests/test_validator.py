"""
Tests for the ingestion validator: extension and size gates.
"""

import logging

import pytest

from resume_insight.exceptions import FileSizeExceededError, UnsupportedFileTypeError
from resume_insight.schemas.extraction import FileType
from resume_insight.services.extraction.validator import IngestionValidator

MB = 1024 * 1024


@pytest.fixture
def validator():
    return IngestionValidator(10 * MB)


@pytest.mark.parametrize("key,expected", [
    ("resume.pdf", FileType.PDF),
    ("private/u1/abc-resume.PDF", FileType.PDF),
    ("cv.docx", FileType.DOCX),
    ("folder/CV.DocX", FileType.DOCX),
])
def test_supported_files_pass(validator, key, expected):
    assert validator.validate(key, 4 * MB) == expected


@pytest.mark.parametrize("key,extension", [
    ("resume.exe", ".exe"),
    ("resume.doc", ".doc"),
    ("resume.pdf.zip", ".zip"),
    ("resume", ""),
])
def test_unsupported_extension_is_rejected(validator, key, extension):
    with pytest.raises(UnsupportedFileTypeError) as exc_info:
        validator.validate(key, 1024, correlation_id="cid-1")

    assert exc_info.value.extension == extension
    assert exc_info.value.correlation_id == "cid-1"
    assert exc_info.value.status_code == 400


def test_oversized_file_is_rejected(validator):
    with pytest.raises(FileSizeExceededError) as exc_info:
        validator.validate("resume.pdf", 10 * MB + 1)

    assert exc_info.value.file_size == 10 * MB + 1
    assert exc_info.value.max_size == 10 * MB
    assert exc_info.value.status_code == 413


def test_file_exactly_at_limit_passes(validator):
    assert validator.validate("resume.pdf", 10 * MB) == FileType.PDF


def test_extension_is_checked_before_size(validator):
    """An .exe over the limit reports the type problem, not the size."""
    with pytest.raises(UnsupportedFileTypeError):
        validator.validate("resume.exe", 50 * MB)


def test_near_limit_logs_warning_but_passes(validator, caplog):
    with caplog.at_level(logging.WARNING, logger="ingestion_validator"):
        validator.validate_size(9 * MB, correlation_id="cid-2")

    assert any("approaching limit" in r.getMessage() for r in caplog.records)


def test_small_file_does_not_warn(validator, caplog):
    with caplog.at_level(logging.WARNING, logger="ingestion_validator"):
        validator.validate_size(4 * MB)

    assert not caplog.records


def test_max_size_must_be_positive():
    with pytest.raises(ValueError):
        IngestionValidator(0)
