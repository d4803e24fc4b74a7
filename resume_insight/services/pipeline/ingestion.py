import logging
import uuid
from typing import List
from urllib.parse import unquote_plus

from ...exceptions import ExtractionFailedError, PipelineError, StorageError
from ...schemas.extraction import UploadEvent, UploadEventRecord
from ...schemas.resume import AnalyzerInvocationPayload, PipelineStatus
from ...utils.file_handler import ObjectStorage
from ..extraction.processor import FileProcessingOrchestrator
from ..extraction.validator import IngestionValidator
from ..storage.profile_store import ProfileStore
from .forwarder import PipelineForwarder, parse_user_id

logger = logging.getLogger("ingestion")


def derive_resume_id(object_key: str) -> str:
    """Same key, same id: a re-delivered upload lands on the same profile."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, object_key))


class IngestionHandler:
    """
    Entry point for upload-completion notifications: validate, extract,
    normalize, then hand the text to the analysis stage.
    """

    def __init__(
        self,
        validator: IngestionValidator,
        storage: ObjectStorage,
        orchestrator: FileProcessingOrchestrator,
        forwarder: PipelineForwarder,
        profiles: ProfileStore,
    ):
        self.validator = validator
        self.storage = storage
        self.orchestrator = orchestrator
        self.forwarder = forwarder
        self.profiles = profiles

    async def handle_event(self, event: UploadEvent) -> List[AnalyzerInvocationPayload]:
        correlation_id = str(uuid.uuid4())
        if not event.records:
            logger.warning(f"[{correlation_id}] Upload event contained no records, nothing to do")
            return []

        logger.info(f"[{correlation_id}] Processing {len(event.records)} upload record(s)")
        payloads = []
        # Sequential on purpose: one document's log lines never interleave with another's
        for record in event.records:
            payloads.append(await self.process_record(record, correlation_id))
        return payloads

    async def process_record(self, record: UploadEventRecord, correlation_id: str) -> AnalyzerInvocationPayload:
        bucket = record.bucket
        key = unquote_plus(record.key)
        resume_id = derive_resume_id(key)
        user_id = parse_user_id(key)
        logger.info(f"[{correlation_id}] Received {bucket}/{key} (resume {resume_id}, user {user_id})")

        try:
            self.validator.validate_extension(key, correlation_id)
            size = record.size if record.size is not None else await self.storage.get_size(bucket, key)
            self.validator.validate_size(size, correlation_id)

            self.profiles.set_status(
                resume_id, PipelineStatus.PENDING, correlation_id=correlation_id, user_id=user_id, s3_key=key
            )

            result = await self.orchestrator.process(bucket, key, correlation_id)
            if not result.success:
                raise ExtractionFailedError(result.error_message or "unknown error", correlation_id)

            return await self.forwarder.forward(resume_id, result, correlation_id)
        except PipelineError as e:
            e.tag(correlation_id)
            logger.error(f"[{correlation_id}] {e.error_code}: {e.message}")
            self._mark_failed(resume_id, e.message, correlation_id, user_id, key)
            raise
        except Exception as e:
            logger.exception(f"[{correlation_id}] Unexpected error while ingesting {bucket}/{key}: {e}")
            self._mark_failed(resume_id, str(e), correlation_id, user_id, key)
            raise

    def _mark_failed(self, resume_id: str, message: str, correlation_id: str, user_id: str, key: str) -> None:
        try:
            self.profiles.set_status(
                resume_id,
                PipelineStatus.FAILED,
                error_message=message,
                correlation_id=correlation_id,
                user_id=user_id,
                s3_key=key,
            )
        except StorageError as storage_error:
            # The original failure is what gets raised to the caller
            logger.error(f"[{correlation_id}] Could not record FAILED status for {resume_id}: {storage_error}")
