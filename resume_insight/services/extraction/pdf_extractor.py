import asyncio
import io
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List

import pdfplumber
import pytesseract

from ...exceptions import ExtractionFailedError
from ...schemas.extraction import FileType
from ...utils.file_handler import ObjectStorage
from .base import ExtractedText, TextExtractor
from .preprocess import prepare_page_image

logger = logging.getLogger("pdf_extractor")

LINE_BLOCK = "LINE"
WORD_BLOCK = "WORD"


@dataclass
class OcrBlock:
    text: str
    page: int = 1
    top: float = 0.0
    block_type: str = LINE_BLOCK


@dataclass
class OcrDocument:
    blocks: List[OcrBlock] = field(default_factory=list)
    page_count: int = 0


class OcrClient(ABC):
    """Detects text in a stored document and reports it as positioned blocks."""

    @abstractmethod
    async def detect_document_text(self, bucket: str, key: str) -> OcrDocument:
        ...


class PdfplumberOcrClient(OcrClient):
    """
    Reads the PDF text layer with pdfplumber and falls back to Tesseract for
    pages that have none (scanned resumes).
    """

    def __init__(self, storage: ObjectStorage, ocr_lang: str = "eng", resolution: int = 300):
        self.storage = storage
        self.ocr_lang = ocr_lang
        self.resolution = resolution

    async def detect_document_text(self, bucket: str, key: str) -> OcrDocument:
        data = await self.storage.read_bytes(bucket, key)
        return await asyncio.to_thread(self._detect, data)

    def _detect(self, data: bytes) -> OcrDocument:
        document = OcrDocument()
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            document.page_count = len(pdf.pages)
            for page_number, page in enumerate(pdf.pages, start=1):
                words = page.extract_words()
                if words:
                    document.blocks.extend(self._text_layer_lines(words, page_number))
                else:
                    logger.info(f"Page {page_number} has no text layer, running Tesseract")
                    document.blocks.extend(self._tesseract_lines(page, page_number))
        return document

    @staticmethod
    def _text_layer_lines(words: List[Dict], page_number: int) -> List[OcrBlock]:
        lines = defaultdict(list)
        # Group words by their 'top' (y-coordinate)
        for w in words:
            lines[round(w["top"])].append(w)

        blocks = []
        for top, line_words in sorted(lines.items()):
            line_words.sort(key=lambda w: w["x0"])
            blocks.append(OcrBlock(
                text=" ".join(w["text"] for w in line_words),
                page=page_number,
                top=float(top),
            ))
        return blocks

    def _tesseract_lines(self, page, page_number: int) -> List[OcrBlock]:
        image = prepare_page_image(page.to_image(resolution=self.resolution).original)
        data = pytesseract.image_to_data(image, lang=self.ocr_lang, output_type=pytesseract.Output.DICT)

        lines: Dict[tuple, List[int]] = defaultdict(list)
        for i, raw in enumerate(data["text"]):
            if raw.strip():
                lines[(data["block_num"][i], data["par_num"][i], data["line_num"][i])].append(i)

        blocks = []
        for indices in lines.values():
            indices.sort(key=lambda i: data["left"][i])
            blocks.append(OcrBlock(
                text=" ".join(data["text"][i].strip() for i in indices),
                page=page_number,
                top=float(min(data["top"][i] for i in indices)),
            ))
        return blocks


class PdfOcrExtractor(TextExtractor):
    file_type = FileType.PDF

    def __init__(self, ocr_client: OcrClient):
        self.ocr_client = ocr_client

    async def extract(self, bucket: str, key: str) -> ExtractedText:
        logger.info(f"Starting PDF text detection for {bucket}/{key}")
        try:
            document = await self.ocr_client.detect_document_text(bucket, key)
        except ExtractionFailedError:
            raise
        except Exception as e:
            logger.error(f"OCR failed for {bucket}/{key}: {e}")
            raise ExtractionFailedError(f"OCR failed to extract text from PDF: {e}") from e

        lines = [b for b in document.blocks if b.block_type == LINE_BLOCK and b.text]
        lines.sort(key=lambda b: (b.page, b.top))
        text = "\n".join(b.text for b in lines)

        if not text.strip():
            raise ExtractionFailedError("OCR returned no text for PDF")

        logger.info(f"Detected {len(lines)} lines across {document.page_count} pages")
        return ExtractedText(text=text, page_count=document.page_count)
