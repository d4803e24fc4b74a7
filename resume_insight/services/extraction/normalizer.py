import logging
import re
from typing import Optional

logger = logging.getLogger("text_normalizer")

# C0/C1 control characters except \t and \n (\r is folded into \n first)
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
HORIZONTAL_WHITESPACE = re.compile(r"[ \t]+")
EXCESSIVE_NEWLINES = re.compile(r"\n{3,}")


class TextNormalizer:
    """Cleans raw extracted text into a stable form for analysis."""

    def normalize(self, raw_text: Optional[str]) -> str:
        if not raw_text:
            logger.warning("Received empty text for normalization")
            return ""

        text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
        text = CONTROL_CHARS.sub("", text)
        text = HORIZONTAL_WHITESPACE.sub(" ", text)
        text = "\n".join(line.rstrip() for line in text.split("\n"))
        # Keep section breaks (blank line) but drop longer gaps
        text = EXCESSIVE_NEWLINES.sub("\n\n", text)
        text = text.strip()

        logger.debug(f"Normalized text: {len(raw_text)} -> {len(text)} characters")
        return text

    def is_valid(self, text: Optional[str]) -> bool:
        valid = bool(text and text.strip())
        if not valid:
            logger.warning("Text validation failed: text is empty or whitespace-only")
        return valid
