import asyncio
import io
import logging
from typing import Iterator

from docx import Document
from docx.oxml.ns import qn

from ...exceptions import ExtractionFailedError
from ...schemas.extraction import FileType
from ...utils.file_handler import ObjectStorage
from .base import ExtractedText, TextExtractor

logger = logging.getLogger("docx_extractor")


def _paragraph_texts(doc) -> Iterator[str]:
    """
    Walk every paragraph in the document body (tables included, in document
    order) and join its text runs. Empty paragraphs are skipped.
    """
    for paragraph in doc.element.body.iter(qn("w:p")):
        text = "".join(run.text or "" for run in paragraph.iter(qn("w:t")))
        if text:
            yield text


def read_docx_text(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join(_paragraph_texts(doc))


class DocxExtractor(TextExtractor):
    file_type = FileType.DOCX

    def __init__(self, storage: ObjectStorage):
        self.storage = storage

    async def extract(self, bucket: str, key: str) -> ExtractedText:
        logger.info(f"Downloading DOCX {bucket}/{key}")
        try:
            data = await self.storage.read_bytes(bucket, key)
        except Exception as e:
            raise ExtractionFailedError(f"Failed to download DOCX file: {e}") from e

        try:
            text = await asyncio.to_thread(read_docx_text, data)
        except Exception as e:
            logger.error(f"Could not parse DOCX {bucket}/{key}: {e}")
            raise ExtractionFailedError(f"Failed to parse DOCX document structure: {e}") from e

        if not text.strip():
            raise ExtractionFailedError("DOCX document contains no text")

        # Page count is not recorded in the document body
        return ExtractedText(text=text, page_count=0)
