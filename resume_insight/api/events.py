from fastapi import APIRouter, BackgroundTasks, Depends, status

from ..schemas.extraction import UploadEvent
from ..schemas.resume import AnalyzerInvocationPayload
from .deps import Services, get_services

router = APIRouter()


@router.post("/events/upload")
async def upload_event_endpoint(event: UploadEvent, services: Services = Depends(get_services)):
    """
    Upload-completion notification from object storage. Records are processed
    in order; the first failure aborts the batch and is returned as an error.
    """
    payloads = await services.ingestion.handle_event(event)
    return {
        "processed": len(payloads),
        "resumeIds": [p.resume_id for p in payloads],
        "correlationId": payloads[0].correlation_id if payloads else None,
    }


@router.post("/internal/analyze", status_code=status.HTTP_202_ACCEPTED)
async def internal_analyze_endpoint(
    payload: AnalyzerInvocationPayload,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
):
    """One-way hand-off from the ingestion stage; analysis runs after the 202."""
    background_tasks.add_task(services.analysis_stage.handle_invocation, payload)
    return {"accepted": True, "resumeId": payload.resume_id, "correlationId": payload.correlation_id}
