from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePosixPath
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic import Field

from .base import CamelModel


class FileType(str, Enum):
    UNKNOWN = "unknown"
    PDF = "pdf"
    DOCX = "docx"

    @classmethod
    def from_key(cls, object_key: str) -> "FileType":
        extension = PurePosixPath(object_key).suffix.lower().lstrip(".")
        try:
            return cls(extension)
        except ValueError:
            return cls.UNKNOWN


class ProcessingState(str, Enum):
    RECEIVED = "Received"
    EXTRACTING = "Extracting"
    NORMALIZING = "Normalizing"
    VALIDATED = "Validated"
    FAILED = "Failed"


class ExtractionResult(CamelModel):
    bucket: str
    key: str
    file_type: FileType = FileType.UNKNOWN
    text: str = ""
    page_count: int = 0
    success: bool = False
    error_message: Optional[str] = None
    state: ProcessingState = ProcessingState.RECEIVED
    processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Upload-completion notification ---
# {"Records": [{"s3": {"bucket": {"name": ...}, "object": {"key": ..., "size": ...}}}]}

class StorageBucket(CamelModel):
    name: str


class StorageObject(CamelModel):
    key: str
    size: Optional[int] = None


class StorageEntity(CamelModel):
    bucket: StorageBucket
    object_: StorageObject = Field(alias="object")


class UploadEventRecord(CamelModel):
    s3: StorageEntity

    @property
    def bucket(self) -> str:
        return self.s3.bucket.name

    @property
    def key(self) -> str:
        return self.s3.object_.key

    @property
    def size(self) -> Optional[int]:
        return self.s3.object_.size


class UploadEvent(CamelModel):
    records: List[UploadEventRecord] = Field(default_factory=list, alias="Records")

    @classmethod
    def for_object(cls, bucket: str, key: str, size: Optional[int] = None) -> "UploadEvent":
        """Notification for a stored object; the key is URL-encoded as storage notifications carry it."""
        encoded = quote_plus(key, safe="/")
        return cls(records=[{"s3": {"bucket": {"name": bucket}, "object": {"key": encoded, "size": size}}}])
