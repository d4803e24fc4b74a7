from typing import List

from fastapi import APIRouter, Depends, Query

from ..exceptions import ForbiddenError, NotFoundError
from ..schemas.resume import AnalyzeRequest, AnalyzeResponse, Profile
from ..utils.file_handler import PRIVATE_PREFIX
from .deps import Services, get_services, get_user_id

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_endpoint(
    request: AnalyzeRequest,
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    """
    Analyze a resume against an optional job description. The text comes from
    the request or, when omitted, from the stored profile.
    """
    return await services.analysis_stage.analyze(request, user_id)


@router.get("/resumes")
async def list_resumes_endpoint(
    sort_by: str = Query("createdAt", alias="sortBy"),
    order: str = Query("desc"),
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
) -> List[dict]:
    """The caller's resumes, without the full resume text."""
    profiles = services.profiles.list_by_user(user_id, sort_by, order)
    return [p.model_dump(mode="json", by_alias=True, exclude={"resume_text"}) for p in profiles]


@router.get("/resumes/{resume_id:path}", response_model=Profile)
async def get_resume_endpoint(
    resume_id: str,
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    """Fetch a resume by id, or by its object key (``private/{userId}/...``)."""
    if resume_id.startswith(PRIVATE_PREFIX):
        profile = services.profiles.get_by_s3_key(resume_id)
    else:
        profile = services.profiles.get(resume_id)
    if profile is None:
        raise NotFoundError(f"Resume {resume_id} not found")
    if profile.user_id and profile.user_id != user_id:
        raise ForbiddenError("You do not have access to this resume")
    return profile
