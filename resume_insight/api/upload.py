import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile, status

from ..exceptions import FileSizeExceededError
from ..schemas.extraction import UploadEvent
from ..services.pipeline.ingestion import derive_resume_id
from ..utils.file_handler import save_upload_file
from .deps import Services, get_services, get_user_id

logger = logging.getLogger("upload_api")

router = APIRouter()


@router.post("/upload_resume", status_code=status.HTTP_202_ACCEPTED)
async def upload_resume_endpoint(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    """
    Store an uploaded resume (.pdf or .docx) under the caller's private prefix
    and start the ingestion pipeline for it. Poll GET /resumes/{resumeId} for
    the result.
    """
    # Reject unsupported types before anything is written
    services.validator.validate_extension(file.filename or "")

    bucket = services.settings.UPLOAD_BUCKET
    key, size = await save_upload_file(services.storage, bucket, file, user_id)
    try:
        services.validator.validate_size(size)
    except FileSizeExceededError:
        await services.storage.delete(bucket, key)
        raise

    background_tasks.add_task(services.ingestion.handle_event, UploadEvent.for_object(bucket, key, size))
    resume_id = derive_resume_id(key)
    logger.info(f"Accepted upload {bucket}/{key} for user {user_id} as resume {resume_id}")
    return {"resumeId": resume_id, "key": key, "size": size, "status": "PENDING"}
