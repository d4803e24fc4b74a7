import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_ollama import ChatOllama, OllamaLLM

from ...exceptions import InferenceAccessDeniedError, InferenceError
from ...schemas.chat import ChatMessage
from ..analysis.entity_extractor import DetectedEntity, NlpClient

logger = logging.getLogger("llm_clients")

ACCESS_DENIED_STATUSES = (401, 403)
ACCESS_DENIED_MARKERS = ("accessdenied", "unauthorized")

ENTITY_TEMPLATE = """
You are a named-entity recognizer for resumes. Find every PERSON, ORGANIZATION,
LOCATION and DATE mentioned in the text below.

Return ONLY a JSON array, no prose, where each item looks like:
{{"text": "<entity as written>", "type": "PERSON", "score": 0.0 to 1.0}}

Text:
{text}
"""


def parse_json_output(raw: str) -> Any:
    """Parses model output that may be wrapped in a markdown code block."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    return json.loads(text)


def is_access_denied(error: Exception) -> bool:
    status = getattr(error, "status_code", None)
    if status in ACCESS_DENIED_STATUSES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in ACCESS_DENIED_MARKERS)


class OllamaNlpClient(NlpClient):
    def __init__(self, model_id: str, base_url: Optional[str] = None):
        llm = OllamaLLM(model=model_id, base_url=base_url, temperature=0)
        self.chain = PromptTemplate.from_template(ENTITY_TEMPLATE) | llm | StrOutputParser()

    async def detect_entities(self, text: str) -> List[DetectedEntity]:
        raw = await self.chain.ainvoke({"text": text})
        items = parse_json_output(raw)
        if not isinstance(items, list):
            raise ValueError("Entity recognizer did not return a JSON array")

        entities = []
        for item in items:
            if isinstance(item, dict) and item.get("text") and item.get("type"):
                entities.append(DetectedEntity(
                    text=str(item["text"]),
                    type=str(item["type"]).upper(),
                    score=float(item.get("score") or 0.0),
                ))
        return entities


class InferenceClient(ABC):
    """
    Chat-completion endpoint. Returns the response as a list of content blocks,
    each a dict with a ``type`` and, for text blocks, a ``text`` field.
    """

    @abstractmethod
    async def invoke(
        self,
        system_prompt: str,
        messages: Sequence[ChatMessage],
        temperature: float,
        max_tokens: int,
    ) -> List[Dict[str, Any]]:
        ...


def _to_langchain(system_prompt: str, messages: Sequence[ChatMessage]) -> list:
    converted = [SystemMessage(content=system_prompt)]
    for message in messages:
        if message.role == "assistant":
            converted.append(AIMessage(content=message.content))
        else:
            converted.append(HumanMessage(content=message.content))
    return converted


def _content_blocks(content) -> List[Dict[str, Any]]:
    if isinstance(content, str):
        return [{"type": "text", "text": content}] if content else []
    blocks = []
    for part in content or []:
        if isinstance(part, str):
            blocks.append({"type": "text", "text": part})
        elif isinstance(part, dict):
            blocks.append(part)
    return blocks


class OllamaChatClient(InferenceClient):
    def __init__(self, model_id: str, base_url: Optional[str] = None):
        self.model_id = model_id
        self.base_url = base_url

    async def invoke(self, system_prompt, messages, temperature, max_tokens):
        llm = ChatOllama(
            model=self.model_id,
            base_url=self.base_url,
            temperature=temperature,
            num_predict=max_tokens,
        )
        try:
            response = await llm.ainvoke(_to_langchain(system_prompt, messages))
        except Exception as e:
            if is_access_denied(e):
                logger.error(f"Access denied to model {self.model_id}: {e}")
                raise InferenceAccessDeniedError(self.model_id, str(e)) from e
            logger.error(f"Inference call to {self.model_id} failed: {e}")
            raise InferenceError(f"Inference call failed: {e}") from e
        return _content_blocks(response.content)
