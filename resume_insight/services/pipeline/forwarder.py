import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ...exceptions import AnalyzerInvocationFailedError
from ...schemas.extraction import ExtractionResult
from ...schemas.resume import AnalyzerInvocationPayload

logger = logging.getLogger("pipeline_forwarder")

ACCEPTED = 202
ANONYMOUS_USER = "anonymous"


def parse_user_id(object_key: str) -> str:
    """Upload keys look like ``private/{userId}/...``; anything else is anonymous."""
    parts = object_key.split("/")
    if len(parts) >= 3 and parts[0] == "private" and parts[1]:
        return parts[1]
    return ANONYMOUS_USER


class AnalyzerTransport(ABC):
    """Delivers the payload to the analysis stage and returns the status it answered with."""

    @abstractmethod
    async def send(self, payload: AnalyzerInvocationPayload) -> int:
        ...


class HttpAnalyzerTransport(AnalyzerTransport):
    def __init__(self, url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def send(self, payload: AnalyzerInvocationPayload) -> int:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json=payload.model_dump(mode="json", by_alias=True))
        return response.status_code


class PipelineForwarder:
    def __init__(self, transport: AnalyzerTransport):
        self.transport = transport

    @staticmethod
    def build_payload(resume_id: str, result: ExtractionResult, correlation_id: str) -> AnalyzerInvocationPayload:
        return AnalyzerInvocationPayload(
            resume_id=resume_id,
            resume_text=result.text,
            source_bucket=result.bucket,
            source_key=result.key,
            file_type=result.file_type.value,
            extracted_at=result.processed_at,
            correlation_id=correlation_id,
            user_id=parse_user_id(result.key),
        )

    async def forward(self, resume_id: str, result: ExtractionResult, correlation_id: str) -> AnalyzerInvocationPayload:
        payload = self.build_payload(resume_id, result, correlation_id)
        logger.info(f"[{correlation_id}] Forwarding resume {resume_id} ({len(result.text)} chars) to analyzer")

        try:
            status = await self.transport.send(payload)
        except Exception as e:
            logger.error(f"[{correlation_id}] Analyzer invocation failed: {e}")
            raise AnalyzerInvocationFailedError(f"Failed to invoke analyzer: {e}", correlation_id) from e

        if status != ACCEPTED:
            logger.error(f"[{correlation_id}] Analyzer answered {status}, expected {ACCEPTED}")
            raise AnalyzerInvocationFailedError(
                f"Analyzer invocation returned status {status}, expected {ACCEPTED}", correlation_id
            )

        logger.info(f"[{correlation_id}] Analyzer accepted resume {resume_id}")
        return payload
