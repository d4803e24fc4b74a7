"""
Tests for the upload-event ingestion handler.

The validator and profile store are real; storage, orchestrator and forwarder
are mocked so each test can observe which steps ran.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from resume_insight.exceptions import (
    AnalyzerInvocationFailedError,
    ExtractionFailedError,
    FileSizeExceededError,
    UnsupportedFileTypeError,
)
from resume_insight.schemas.extraction import ExtractionResult, FileType, ProcessingState, UploadEvent
from resume_insight.schemas.resume import PipelineStatus
from resume_insight.services.extraction.validator import IngestionValidator
from resume_insight.services.pipeline.ingestion import IngestionHandler, derive_resume_id

MB = 1024 * 1024


# ============================================================================
# FIXTURES
# ============================================================================

def extraction(key, success=True, text="Jane Doe\nSkills: Python, SQL", error=None):
    return ExtractionResult(
        bucket="resumes",
        key=key,
        file_type=FileType.from_key(key),
        text=text if success else "",
        success=success,
        state=ProcessingState.VALIDATED if success else ProcessingState.FAILED,
        error_message=error,
    )


@pytest.fixture
def storage():
    mock = MagicMock()
    mock.get_size = AsyncMock(return_value=4 * MB)
    return mock


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    mock.process = AsyncMock(side_effect=lambda bucket, key, cid: extraction(key))
    return mock


@pytest.fixture
def forwarder():
    mock = MagicMock()
    mock.forward = AsyncMock(side_effect=lambda resume_id, result, cid: MagicMock(
        resume_id=resume_id, correlation_id=cid, source_key=result.key
    ))
    return mock


@pytest.fixture
def handler(storage, orchestrator, forwarder, profile_store):
    return IngestionHandler(IngestionValidator(10 * MB), storage, orchestrator, forwarder, profile_store)


# ============================================================================
# TESTS
# ============================================================================

def test_resume_id_is_deterministic():
    assert derive_resume_id("private/u1/a.pdf") == derive_resume_id("private/u1/a.pdf")
    assert derive_resume_id("private/u1/a.pdf") != derive_resume_id("private/u1/b.pdf")


async def test_pdf_under_limit_is_extracted_and_forwarded(handler, orchestrator, forwarder, profile_store):
    event = UploadEvent.for_object("resumes", "private/u1/resume.pdf", 4 * MB)

    payloads = await handler.handle_event(event)

    assert len(payloads) == 1
    orchestrator.process.assert_awaited_once()
    forwarder.forward.assert_awaited_once()
    resume_id = derive_resume_id("private/u1/resume.pdf")
    assert payloads[0].resume_id == resume_id

    profile = profile_store.get(resume_id)
    assert profile.status == PipelineStatus.PENDING
    assert profile.user_id == "u1"
    assert profile.s3_key == "private/u1/resume.pdf"
    assert profile.correlation_id == payloads[0].correlation_id


async def test_exe_rejected_before_extraction(handler, orchestrator, forwarder, profile_store):
    event = UploadEvent.for_object("resumes", "private/u1/resume.exe", 1024)

    with pytest.raises(UnsupportedFileTypeError) as exc_info:
        await handler.handle_event(event)

    orchestrator.process.assert_not_awaited()
    forwarder.forward.assert_not_awaited()
    assert exc_info.value.correlation_id

    profile = profile_store.get(derive_resume_id("private/u1/resume.exe"))
    assert profile.status == PipelineStatus.FAILED
    assert profile.correlation_id == exc_info.value.correlation_id


async def test_oversized_file_rejected_before_extraction(handler, orchestrator):
    event = UploadEvent.for_object("resumes", "resume.pdf", 11 * MB)

    with pytest.raises(FileSizeExceededError):
        await handler.handle_event(event)

    orchestrator.process.assert_not_awaited()


async def test_size_is_fetched_when_missing_from_record(handler, storage):
    await handler.handle_event(UploadEvent.for_object("resumes", "resume.docx"))

    storage.get_size.assert_awaited_once_with("resumes", "resume.docx")


async def test_object_key_is_url_decoded(handler, orchestrator):
    event = UploadEvent(records=[
        {"s3": {"bucket": {"name": "resumes"}, "object": {"key": "private/u1/my+resume%281%29.pdf", "size": 1024}}}
    ])

    await handler.handle_event(event)

    assert orchestrator.process.await_args.args[1] == "private/u1/my resume(1).pdf"


async def test_stored_key_with_plus_signs_survives_the_event(handler, orchestrator, profile_store):
    key = "private/u1/abc-C++_cv%20v2.pdf"

    payloads = await handler.handle_event(UploadEvent.for_object("resumes", key, 1024))

    assert orchestrator.process.await_args.args[1] == key
    assert payloads[0].resume_id == derive_resume_id(key)
    assert profile_store.get(derive_resume_id(key)).s3_key == key


async def test_failed_extraction_raises_and_marks_profile(handler, orchestrator, forwarder, profile_store):
    orchestrator.process.side_effect = None
    orchestrator.process.return_value = extraction(
        "resume.pdf", success=False, error="Extracted text is empty or contains only whitespace"
    )

    with pytest.raises(ExtractionFailedError) as exc_info:
        await handler.handle_event(UploadEvent.for_object("resumes", "resume.pdf", 1024))

    forwarder.forward.assert_not_awaited()
    assert "empty or contains only whitespace" in exc_info.value.message
    profile = profile_store.get(derive_resume_id("resume.pdf"))
    assert profile.status == PipelineStatus.FAILED
    assert "empty" in profile.error_message


async def test_extractor_error_is_not_prefixed_twice(handler, orchestrator, profile_store):
    orchestrator.process.side_effect = None
    orchestrator.process.return_value = extraction(
        "resume.docx", success=False, error=str(ExtractionFailedError("Failed to download DOCX file"))
    )

    with pytest.raises(ExtractionFailedError) as exc_info:
        await handler.handle_event(UploadEvent.for_object("resumes", "resume.docx", 1024))

    assert exc_info.value.message == "Text extraction failed: Failed to download DOCX file"
    profile = profile_store.get(derive_resume_id("resume.docx"))
    assert profile.error_message == "Text extraction failed: Failed to download DOCX file"


async def test_forwarding_failure_propagates(handler, forwarder):
    forwarder.forward.side_effect = AnalyzerInvocationFailedError("Analyzer invocation returned status 500")

    with pytest.raises(AnalyzerInvocationFailedError) as exc_info:
        await handler.handle_event(UploadEvent.for_object("resumes", "resume.pdf", 1024))

    # Tagged with the event's correlation id on the way out
    assert exc_info.value.correlation_id


async def test_records_processed_in_order_with_one_correlation_id(handler, orchestrator):
    event = UploadEvent(records=[
        {"s3": {"bucket": {"name": "resumes"}, "object": {"key": "a.pdf", "size": 10}}},
        {"s3": {"bucket": {"name": "resumes"}, "object": {"key": "b.docx", "size": 10}}},
    ])

    payloads = await handler.handle_event(event)

    keys = [call.args[1] for call in orchestrator.process.await_args_list]
    assert keys == ["a.pdf", "b.docx"]
    assert payloads[0].correlation_id == payloads[1].correlation_id


async def test_empty_event_is_ignored(handler, orchestrator):
    assert await handler.handle_event(UploadEvent()) == []
    orchestrator.process.assert_not_awaited()
