from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./resume_insight.db"
    TABLE_NAME: str = "ResumeAnalyzerTable"

    # Object storage (local root; each bucket is a sub-directory)
    STORAGE_ROOT: str = "uploads"
    UPLOAD_BUCKET: str = "resumes"
    MAX_FILE_SIZE_MB: int = 10

    # Where the ingestion stage forwards extracted text
    ANALYZER_URL: str = "http://localhost:8000/api/v1/internal/analyze"
    ANALYZER_TIMEOUT_SECONDS: float = 10.0

    # LLM / NLP collaborators
    OLLAMA_BASE_URL: Optional[str] = None
    MODEL_ID: str = "llama3"
    NLP_ENABLED: bool = True
    ADVISOR_ENABLED: bool = True

    # Chat assembly
    MAX_CONTEXT_LENGTH: int = 100000
    CHAT_MAX_TOKENS: int = 2000
    CHAT_TEMPERATURE: float = 0.7
    CV_PROMPT_CHARS: int = 3000
    JD_PROMPT_CHARS: int = 2000

    OCR_LANG: str = "eng"
    LOG_LEVEL: str = "INFO"

    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(env_file=["../.env", ".env"], env_file_encoding="utf-8", extra="ignore")

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
