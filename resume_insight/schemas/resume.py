from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class ExtractionMethod(str, Enum):
    MANAGED_NLP = "managed-nlp"
    REGEX = "regex"


class PipelineStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ExtractedEntities(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    method: ExtractionMethod = ExtractionMethod.REGEX
    total_found: int = 0


class ImprovementItem(CamelModel):
    area: str
    advice: str


class AnalysisResult(CamelModel):
    fit_score: float = 0.0
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    resume_entities: ExtractedEntities = Field(default_factory=ExtractedEntities)
    recommendation: str = ""
    job_description: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    improvement_plan: List[ImprovementItem] = Field(default_factory=list)


class Profile(CamelModel):
    resume_id: str
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    resume_text: Optional[str] = None
    s3_key: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_analysis: Optional[AnalysisResult] = None
    status: PipelineStatus = PipelineStatus.PENDING
    error_message: Optional[str] = None
    correlation_id: Optional[str] = None
    session_name: Optional[str] = None


class AnalysisRecord(CamelModel):
    resume_id: str
    timestamp: datetime
    method: ExtractionMethod
    entity_count: int
    created_at: datetime


# For POST /analyze
class AnalyzeRequest(CamelModel):
    resume_id: Optional[str] = None
    resume_text: Optional[str] = None
    job_description: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None


class AnalyzeResponse(CamelModel):
    resume_id: str
    message: str
    analysis: Optional[AnalysisResult] = None


class AnalyzerInvocationPayload(CamelModel):
    resume_id: str
    resume_text: str
    source_bucket: str
    source_key: str
    file_type: str
    extracted_at: datetime
    correlation_id: str
    user_id: str = "anonymous"
