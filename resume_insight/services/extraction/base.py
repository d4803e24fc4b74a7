from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...schemas.extraction import FileType


@dataclass
class ExtractedText:
    text: str
    page_count: int = 0


class TextExtractor(ABC):
    """
    Format-specific text retrieval. Implementations raise ExtractionFailedError
    for every failure, whatever the underlying collaborator raised.
    """

    file_type: FileType = FileType.UNKNOWN

    @abstractmethod
    async def extract(self, bucket: str, key: str) -> ExtractedText:
        ...
