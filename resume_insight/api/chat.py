from typing import List

from fastapi import APIRouter, Depends

from ..schemas.chat import ChatMessage, ChatRequest, ChatResponse
from .deps import Services, get_services, get_user_id

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    request: ChatRequest,
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    return await services.chat_service.chat(request, user_id)


@router.get("/chat/{resume_id}/history", response_model=List[ChatMessage])
async def chat_history_endpoint(
    resume_id: str,
    user_id: str = Depends(get_user_id),
    services: Services = Depends(get_services),
):
    return services.chat_service.get_history(resume_id, user_id)
