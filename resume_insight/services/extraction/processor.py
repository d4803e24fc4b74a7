import logging
from pathlib import PurePosixPath
from typing import Dict, Mapping

from ...exceptions import UnsupportedFileTypeError, ValidationError
from ...schemas.extraction import ExtractionResult, FileType, ProcessingState
from ...utils.file_handler import ObjectStorage
from .base import TextExtractor
from .docx_extractor import DocxExtractor
from .normalizer import TextNormalizer
from .pdf_extractor import OcrClient, PdfOcrExtractor

logger = logging.getLogger("file_processor")


def build_extractors(storage: ObjectStorage, ocr_client: OcrClient) -> Dict[FileType, TextExtractor]:
    return {
        FileType.PDF: PdfOcrExtractor(ocr_client),
        FileType.DOCX: DocxExtractor(storage),
    }


class FileProcessingOrchestrator:
    """
    Drives one stored object through extract -> normalize -> validate.

    Failures in any step are reported on the returned ExtractionResult
    (state FAILED, error_message set) instead of being raised.
    """

    def __init__(self, extractors: Mapping[FileType, TextExtractor], normalizer: TextNormalizer):
        self.extractors = dict(extractors)
        self.normalizer = normalizer

    async def process(self, bucket: str, key: str, correlation_id: str = "") -> ExtractionResult:
        if not bucket or not key:
            raise ValidationError("Bucket and key are required", correlation_id)

        result = ExtractionResult(bucket=bucket, key=key, file_type=FileType.from_key(key))
        logger.info(f"[{correlation_id}] Processing {bucket}/{key} as {result.file_type.value}")

        try:
            extractor = self.extractors.get(result.file_type)
            if extractor is None:
                raise UnsupportedFileTypeError(PurePosixPath(key).suffix.lower(), correlation_id)

            result.state = ProcessingState.EXTRACTING
            extracted = await extractor.extract(bucket, key)
            result.page_count = extracted.page_count

            result.state = ProcessingState.NORMALIZING
            normalized = self.normalizer.normalize(extracted.text)
        except Exception as e:
            logger.error(f"[{correlation_id}] Processing failed for {bucket}/{key}: {e}")
            result.state = ProcessingState.FAILED
            result.error_message = str(e)
            return result

        if not self.normalizer.is_valid(normalized):
            result.state = ProcessingState.FAILED
            result.error_message = "Extracted text is empty or contains only whitespace"
            return result

        result.text = normalized
        result.success = True
        result.state = ProcessingState.VALIDATED
        logger.info(f"[{correlation_id}] Extracted {len(normalized)} characters from {key}")
        return result
