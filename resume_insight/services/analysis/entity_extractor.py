import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ...schemas.resume import ExtractedEntities, ExtractionMethod
from .skills import match_skills

logger = logging.getLogger("entity_extractor")

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
NAME_PUNCTUATION = "'.-"

NLP_TEXT_LIMIT = 5000
NAME_SEARCH_LINES = 10
NAME_MAX_LENGTH = 50


def find_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else None


def find_phone(text: str) -> Optional[str]:
    match = PHONE_PATTERN.search(text)
    return match.group(0).strip() if match else None


def is_name_token(token: str) -> bool:
    """Capitalized word of letters (any script) plus apostrophes, dots and hyphens."""
    return token[0].isupper() and all(ch.isalpha() or ch in NAME_PUNCTUATION for ch in token)


def guess_name(text: str) -> Optional[str]:
    """
    Name heuristic: the first of the leading non-empty lines made of exactly two
    capitalized words, with no digits and nothing that looks like contact info.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    for line in lines[:NAME_SEARCH_LINES]:
        if len(line) >= NAME_MAX_LENGTH or any(ch.isdigit() for ch in line):
            continue
        if EMAIL_PATTERN.search(line) or PHONE_PATTERN.search(line):
            continue
        tokens = line.split()
        if len(tokens) == 2 and all(is_name_token(token) for token in tokens):
            return line
    return None


def count_found(entities: ExtractedEntities) -> int:
    present = sum(1 for value in (entities.name, entities.email, entities.phone) if value)
    return present + len(entities.skills)


@dataclass
class DetectedEntity:
    text: str
    type: str
    score: float = 0.0


class NlpClient(ABC):
    """Managed entity recognition service."""

    @abstractmethod
    async def detect_entities(self, text: str) -> List[DetectedEntity]:
        ...


class EntityStrategy(ABC):
    method: ExtractionMethod

    @abstractmethod
    async def extract(self, text: str) -> ExtractedEntities:
        ...


class ManagedNlpEntityExtractor(EntityStrategy):
    method = ExtractionMethod.MANAGED_NLP

    def __init__(self, client: NlpClient):
        self.client = client

    async def extract(self, text: str) -> ExtractedEntities:
        detected = await self.client.detect_entities(text[:NLP_TEXT_LIMIT])
        people = [e for e in detected if e.type.upper() == "PERSON" and e.text.strip()]
        best = max(people, key=lambda e: e.score) if people else None

        entities = ExtractedEntities(
            name=best.text.strip() if best else None,
            email=find_email(text),
            phone=find_phone(text),
            skills=match_skills(text),
            method=self.method,
        )
        entities.total_found = count_found(entities)
        return entities


class RegexEntityExtractor(EntityStrategy):
    method = ExtractionMethod.REGEX

    async def extract(self, text: str) -> ExtractedEntities:
        entities = ExtractedEntities(
            name=guess_name(text),
            email=find_email(text),
            phone=find_phone(text),
            skills=match_skills(text),
            method=self.method,
        )
        entities.total_found = count_found(entities)
        return entities


class EntityExtractor:
    """
    Tries each strategy in order and returns the first result. Every strategy
    but the last may fail; the failure is logged and the next one is used.
    """

    def __init__(self, strategies: Sequence[EntityStrategy]):
        if not strategies:
            raise ValueError("At least one entity strategy is required")
        self.strategies = list(strategies)

    @classmethod
    def with_fallback(cls, nlp_client: Optional[NlpClient] = None) -> "EntityExtractor":
        strategies: List[EntityStrategy] = []
        if nlp_client is not None:
            strategies.append(ManagedNlpEntityExtractor(nlp_client))
        strategies.append(RegexEntityExtractor())
        return cls(strategies)

    async def extract(self, text: str, correlation_id: str = "") -> ExtractedEntities:
        *preferred, last = self.strategies
        for strategy in preferred:
            try:
                entities = await strategy.extract(text)
            except Exception as e:
                logger.warning(
                    f"[{correlation_id}] {strategy.method.value} extraction failed, falling back: {e}"
                )
                continue
            logger.info(f"[{correlation_id}] Entities extracted with {strategy.method.value}: {entities.total_found}")
            return entities

        entities = await last.extract(text)
        logger.info(f"[{correlation_id}] Entities extracted with {last.method.value}: {entities.total_found}")
        return entities

    @staticmethod
    def validate_input(text: Optional[str]) -> bool:
        return isinstance(text, str) and bool(text.strip())
