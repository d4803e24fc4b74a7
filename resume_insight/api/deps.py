from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Header

from ..config import Settings, get_settings
from ..database import build_engine, build_session_factory, init_table
from ..services.analysis.entity_extractor import EntityExtractor
from ..services.analysis.fit_scorer import FitScorer
from ..services.extraction.normalizer import TextNormalizer
from ..services.extraction.pdf_extractor import PdfplumberOcrClient
from ..services.extraction.processor import FileProcessingOrchestrator, build_extractors
from ..services.extraction.validator import IngestionValidator
from ..services.llm.chat_context import ChatContextBuilder
from ..services.llm.chat_service import ChatService
from ..services.llm.clients import OllamaChatClient, OllamaNlpClient
from ..services.llm.improver import OllamaImprovementAdvisor
from ..services.pipeline.analysis import AnalysisStage, LocalAnalyzerTransport
from ..services.pipeline.forwarder import ANONYMOUS_USER, HttpAnalyzerTransport, PipelineForwarder
from ..services.pipeline.ingestion import IngestionHandler
from ..services.storage.analysis_store import AnalysisStore
from ..services.storage.base import ItemStore
from ..services.storage.chat_history_store import ChatHistoryStore
from ..services.storage.profile_store import ProfileStore
from ..utils.file_handler import ObjectStorage


@dataclass
class Services:
    settings: Settings
    storage: ObjectStorage
    validator: IngestionValidator
    profiles: ProfileStore
    analyses: AnalysisStore
    chat_history: ChatHistoryStore
    ingestion: IngestionHandler
    analysis_stage: AnalysisStage
    chat_service: ChatService


def build_services(settings: Settings, in_process_analyzer: bool = False) -> Services:
    """
    Wires every component from settings. With ``in_process_analyzer`` the
    ingestion stage calls the analysis stage directly instead of over HTTP.
    """
    engine = build_engine(settings.DATABASE_URL)
    table = init_table(engine, settings.TABLE_NAME)
    items = ItemStore(build_session_factory(engine), table)
    profiles = ProfileStore(items)
    analyses = AnalysisStore(items)
    chat_history = ChatHistoryStore(items)

    storage = ObjectStorage(settings.STORAGE_ROOT)
    validator = IngestionValidator(settings.max_file_size_bytes)

    nlp_client = OllamaNlpClient(settings.MODEL_ID, settings.OLLAMA_BASE_URL) if settings.NLP_ENABLED else None
    advisor = OllamaImprovementAdvisor(settings.MODEL_ID, settings.OLLAMA_BASE_URL) if settings.ADVISOR_ENABLED else None
    analysis_stage = AnalysisStage(
        EntityExtractor.with_fallback(nlp_client),
        FitScorer(advisor),
        profiles,
        analyses,
    )

    if in_process_analyzer:
        transport = LocalAnalyzerTransport(analysis_stage)
    else:
        transport = HttpAnalyzerTransport(settings.ANALYZER_URL, settings.ANALYZER_TIMEOUT_SECONDS)

    orchestrator = FileProcessingOrchestrator(
        build_extractors(storage, PdfplumberOcrClient(storage, settings.OCR_LANG)),
        TextNormalizer(),
    )
    ingestion = IngestionHandler(validator, storage, orchestrator, PipelineForwarder(transport), profiles)

    chat_service = ChatService(
        profiles,
        chat_history,
        ChatContextBuilder(settings.MAX_CONTEXT_LENGTH, settings.CV_PROMPT_CHARS, settings.JD_PROMPT_CHARS),
        OllamaChatClient(settings.MODEL_ID, settings.OLLAMA_BASE_URL),
        temperature=settings.CHAT_TEMPERATURE,
        max_tokens=settings.CHAT_MAX_TOKENS,
    )

    return Services(
        settings=settings,
        storage=storage,
        validator=validator,
        profiles=profiles,
        analyses=analyses,
        chat_history=chat_history,
        ingestion=ingestion,
        analysis_stage=analysis_stage,
        chat_service=chat_service,
    )


@lru_cache
def get_services() -> Services:
    return build_services(get_settings())


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    # Stand-in for real authentication: the caller's id travels in a header
    return (x_user_id or "").strip() or ANONYMOUS_USER
