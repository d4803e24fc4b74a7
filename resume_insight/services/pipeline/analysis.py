import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

from ...exceptions import ForbiddenError, PipelineError, StorageError, ValidationError
from ...schemas.resume import (
    AnalysisRecord,
    AnalysisResult,
    AnalyzeRequest,
    AnalyzeResponse,
    AnalyzerInvocationPayload,
    ExtractedEntities,
    PipelineStatus,
    Profile,
)
from ...utils.file_handler import PRIVATE_PREFIX
from ..analysis.entity_extractor import EntityExtractor
from ..analysis.fit_scorer import FitScorer
from ..storage.analysis_store import AnalysisStore
from ..storage.profile_store import ProfileStore
from .forwarder import ACCEPTED, AnalyzerTransport
from .ingestion import derive_resume_id

logger = logging.getLogger("analysis_stage")

RESUME_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def session_name_for(job_title: Optional[str], company: Optional[str], when: datetime) -> str:
    if job_title and company:
        return f"{job_title} at {company}"
    if job_title:
        return job_title
    return f"Job Application - {when.strftime('%b %d, %Y')}"


class AnalysisStage:
    def __init__(
        self,
        entity_extractor: EntityExtractor,
        fit_scorer: FitScorer,
        profiles: ProfileStore,
        analyses: AnalysisStore,
    ):
        self.entity_extractor = entity_extractor
        self.fit_scorer = fit_scorer
        self.profiles = profiles
        self.analyses = analyses

    def _persist(
        self,
        resume_id: str,
        resume_text: str,
        entities: ExtractedEntities,
        analysis: AnalysisResult,
        existing: Optional[Profile],
        **fields,
    ) -> Profile:
        now = datetime.now(timezone.utc)
        profile = Profile(
            resume_id=resume_id,
            name=entities.name,
            email=entities.email,
            phone=entities.phone,
            skills=entities.skills,
            resume_text=resume_text,
            created_at=existing.created_at if existing else now,
            last_analysis=analysis,
            status=PipelineStatus.COMPLETED,
            **fields,
        )
        self.profiles.save(profile)
        self.analyses.save(AnalysisRecord(
            resume_id=resume_id,
            timestamp=now,
            method=entities.method,
            entity_count=entities.total_found,
            created_at=now,
        ))
        return profile

    async def handle_invocation(self, payload: AnalyzerInvocationPayload) -> Profile:
        """Analysis of freshly extracted text, without a job description."""
        correlation_id = payload.correlation_id
        logger.info(f"[{correlation_id}] Analyzing resume {payload.resume_id} from {payload.source_key}")

        try:
            if not EntityExtractor.validate_input(payload.resume_text):
                raise ValidationError("resumeText is required", correlation_id)

            entities = await self.entity_extractor.extract(payload.resume_text, correlation_id)
            analysis = await self.fit_scorer.score(entities, correlation_id=correlation_id)
            existing = self.profiles.get(payload.resume_id)

            profile = self._persist(
                payload.resume_id,
                payload.resume_text,
                entities,
                analysis,
                existing,
                user_id=payload.user_id,
                s3_key=payload.source_key,
                correlation_id=correlation_id,
                session_name=existing.session_name if existing else None,
            )
        except PipelineError as e:
            e.tag(correlation_id)
            logger.error(f"[{correlation_id}] {e.error_code}: {e.message}")
            self._mark_failed(payload, e.message)
            raise
        except Exception as e:
            logger.exception(f"[{correlation_id}] Unexpected error while analyzing {payload.resume_id}: {e}")
            self._mark_failed(payload, str(e))
            raise

        logger.info(f"[{correlation_id}] Resume {payload.resume_id} analyzed ({entities.method.value})")
        return profile

    def _mark_failed(self, payload: AnalyzerInvocationPayload, message: str) -> None:
        try:
            self.profiles.set_status(
                payload.resume_id,
                PipelineStatus.FAILED,
                error_message=message,
                correlation_id=payload.correlation_id,
                user_id=payload.user_id,
                s3_key=payload.source_key,
            )
        except StorageError as storage_error:
            logger.error(
                f"[{payload.correlation_id}] Could not record FAILED status for {payload.resume_id}: {storage_error}"
            )

    async def analyze(self, request: AnalyzeRequest, user_id: str) -> AnalyzeResponse:
        """On-demand (re-)analysis, optionally against a job description."""
        errors = []
        resume_id = (request.resume_id or "").strip()
        if resume_id.startswith(PRIVATE_PREFIX):
            resume_id = derive_resume_id(resume_id)
        elif resume_id and not RESUME_ID_PATTERN.match(resume_id):
            errors.append("resumeId may only contain letters, digits, hyphens and underscores")

        existing = self.profiles.get(resume_id) if resume_id and not errors else None
        if existing and existing.user_id and existing.user_id != user_id:
            raise ForbiddenError("You do not have access to this resume")

        resume_text = request.resume_text or (existing.resume_text if existing else None)
        if not EntityExtractor.validate_input(resume_text):
            errors.append("resumeText is required when no processed resume is stored")
        if errors:
            raise ValidationError(errors)

        resume_id = resume_id or str(uuid.uuid4())
        entities = await self.entity_extractor.extract(resume_text)
        analysis = await self.fit_scorer.score(
            entities, request.job_description, request.job_title, request.company
        )

        self._persist(
            resume_id,
            resume_text,
            entities,
            analysis,
            existing,
            user_id=user_id,
            s3_key=existing.s3_key if existing else None,
            correlation_id=existing.correlation_id if existing else None,
            session_name=session_name_for(request.job_title, request.company, datetime.now(timezone.utc)),
        )
        logger.info(f"Resume {resume_id} analyzed, fit score {analysis.fit_score:.1f}")
        return AnalyzeResponse(resume_id=resume_id, message="Analysis completed successfully", analysis=analysis)


class LocalAnalyzerTransport(AnalyzerTransport):
    """Runs the analysis stage in-process; used by the CLI."""

    def __init__(self, stage: AnalysisStage):
        self.stage = stage

    async def send(self, payload: AnalyzerInvocationPayload) -> int:
        await self.stage.handle_invocation(payload)
        return ACCEPTED
