"""
Tests for the format-specific text extractors.

DOCX files are built with python-docx and stored in a temporary object store;
the OCR collaborator is mocked.
"""

from unittest.mock import AsyncMock

import pytest

from resume_insight.exceptions import ExtractionFailedError
from resume_insight.services.extraction.docx_extractor import DocxExtractor
from resume_insight.services.extraction.pdf_extractor import (
    OcrBlock,
    OcrDocument,
    PdfOcrExtractor,
    PdfplumberOcrClient,
)

from .conftest import build_docx


# ============================================================================
# DOCX
# ============================================================================

async def test_docx_paragraphs_joined_in_document_order(object_storage):
    data = build_docx(["Jane Doe", "", "Skills: Python, SQL"], table_cells=["Acme", "2020"])
    await object_storage.save("resumes", "cv.docx", data)

    extracted = await DocxExtractor(object_storage).extract("resumes", "cv.docx")

    assert extracted.text == "Jane Doe\nSkills: Python, SQL\nAcme\n2020"
    assert extracted.page_count == 0


async def test_docx_missing_object_fails(object_storage):
    with pytest.raises(ExtractionFailedError) as exc_info:
        await DocxExtractor(object_storage).extract("resumes", "missing.docx")

    assert "download" in exc_info.value.message
    assert exc_info.value.__cause__ is not None


async def test_docx_corrupt_file_fails(object_storage):
    await object_storage.save("resumes", "broken.docx", b"this is not a zip archive")

    with pytest.raises(ExtractionFailedError) as exc_info:
        await DocxExtractor(object_storage).extract("resumes", "broken.docx")

    assert "document structure" in exc_info.value.message


async def test_docx_without_text_fails(object_storage):
    await object_storage.save("resumes", "empty.docx", build_docx(["", ""]))

    with pytest.raises(ExtractionFailedError):
        await DocxExtractor(object_storage).extract("resumes", "empty.docx")


# ============================================================================
# PDF (OCR collaborator mocked)
# ============================================================================

@pytest.fixture
def ocr_client():
    client = AsyncMock()
    client.detect_document_text = AsyncMock()
    return client


async def test_pdf_keeps_line_blocks_in_reading_order(ocr_client):
    ocr_client.detect_document_text.return_value = OcrDocument(
        blocks=[
            OcrBlock(text="second page", page=2, top=10),
            OcrBlock(text="Skills: Python, SQL", page=1, top=40),
            OcrBlock(text="Skills:", page=1, top=40, block_type="WORD"),
            OcrBlock(text="Jane Doe", page=1, top=5),
        ],
        page_count=2,
    )

    extracted = await PdfOcrExtractor(ocr_client).extract("resumes", "resume.pdf")

    ocr_client.detect_document_text.assert_awaited_once_with("resumes", "resume.pdf")
    assert extracted.text == "Jane Doe\nSkills: Python, SQL\nsecond page"
    assert extracted.page_count == 2


async def test_pdf_with_no_text_fails(ocr_client):
    ocr_client.detect_document_text.return_value = OcrDocument(
        blocks=[OcrBlock(text="x", block_type="WORD")], page_count=1
    )

    with pytest.raises(ExtractionFailedError):
        await PdfOcrExtractor(ocr_client).extract("resumes", "resume.pdf")


async def test_pdf_collaborator_error_is_wrapped(ocr_client):
    ocr_client.detect_document_text.side_effect = RuntimeError("service unavailable")

    with pytest.raises(ExtractionFailedError) as exc_info:
        await PdfOcrExtractor(ocr_client).extract("resumes", "resume.pdf")

    assert "service unavailable" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_text_layer_words_grouped_into_lines():
    words = [
        {"text": "Doe", "top": 10.2, "x0": 50},
        {"text": "Jane", "top": 9.8, "x0": 10},
        {"text": "Python", "top": 30.0, "x0": 10},
    ]

    blocks = PdfplumberOcrClient._text_layer_lines(words, page_number=1)

    assert [b.text for b in blocks] == ["Jane Doe", "Python"]
    assert all(b.block_type == "LINE" and b.page == 1 for b in blocks)
