from typing import List, Literal, Optional

from pydantic import Field

from .base import CamelModel
from .resume import AnalysisResult

Role = Literal["user", "assistant"]


class ChatMessage(CamelModel):
    role: Role
    content: str
    timestamp: str = ""  # ISO 8601, doubles as the ordering key


class ChatContext(CamelModel):
    cv_text: str
    job_description: Optional[str] = None
    last_analysis: Optional[AnalysisResult] = None
    user_message: str
    history: List[ChatMessage] = Field(default_factory=list)


class ChatPrompt(CamelModel):
    system_prompt: str
    messages: List[ChatMessage]


# For POST /chat
class ChatRequest(CamelModel):
    resume_id: str = ""
    user_message: str = ""
    job_description: Optional[str] = None
    chat_history: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(CamelModel):
    ai_message: str
    timestamp: str
