import logging
from typing import List, Optional

from ...exceptions import ForbiddenError, NotFoundError, ValidationError
from ...schemas.chat import ChatContext, ChatMessage, ChatRequest, ChatResponse
from ..storage.chat_history_store import ChatHistoryStore, utc_timestamp
from ..storage.profile_store import ProfileStore
from .chat_context import ChatContextBuilder
from .clients import InferenceClient

logger = logging.getLogger("chat_service")

NO_TEXT_REPLY = "No text content found in AI response."


def first_text_block(blocks) -> str:
    for block in blocks or []:
        if block.get("type") == "text" and block.get("text"):
            return block["text"]
    return NO_TEXT_REPLY


class ChatService:
    """
    One conversational turn: load the profile, assemble the prompt, call the
    model, then persist the user message and the reply.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        history: ChatHistoryStore,
        builder: ChatContextBuilder,
        client: InferenceClient,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ):
        self.profiles = profiles
        self.history = history
        self.builder = builder
        self.client = client
        self.temperature = temperature
        self.max_tokens = max_tokens

    @staticmethod
    def validate(request: ChatRequest) -> None:
        errors = []
        if not request.resume_id or not request.resume_id.strip():
            errors.append("resumeId is required")
        if not request.user_message or not request.user_message.strip():
            errors.append("userMessage is required")
        if errors:
            raise ValidationError(errors)

    def get_history(self, resume_id: str, user_id: str) -> List[ChatMessage]:
        self._owned_profile(resume_id, user_id)
        return self.history.history(resume_id)

    def _owned_profile(self, resume_id: str, user_id: Optional[str]):
        profile = self.profiles.get(resume_id)
        if profile is None:
            raise NotFoundError(f"Resume {resume_id} not found")
        if profile.user_id and profile.user_id != user_id:
            logger.warning(f"User {user_id} attempted to access resume {resume_id}")
            raise ForbiddenError("You do not have access to this resume")
        return profile

    async def chat(self, request: ChatRequest, user_id: str) -> ChatResponse:
        self.validate(request)
        profile = self._owned_profile(request.resume_id, user_id)
        if not profile.resume_text:
            raise NotFoundError("Resume text not found. The profile may still be processing.")

        stored = request.chat_history or self.history.history(request.resume_id)
        job_description = request.job_description
        if not job_description and profile.last_analysis:
            job_description = profile.last_analysis.job_description

        context = ChatContext(
            cv_text=profile.resume_text,
            job_description=job_description,
            last_analysis=profile.last_analysis,
            user_message=request.user_message,
            history=stored,
        )
        prompt = self.builder.build(context)
        logger.info(
            f"Chat turn for {request.resume_id}: {len(prompt.messages)} messages, "
            f"system prompt {len(prompt.system_prompt)} chars"
        )

        # Errors propagate untouched; nothing is persisted for a failed turn
        blocks = await self.client.invoke(
            prompt.system_prompt, prompt.messages, self.temperature, self.max_tokens
        )
        reply = first_text_block(blocks)

        user_turn = self.history.append(
            request.resume_id,
            ChatMessage(role="user", content=request.user_message, timestamp=utc_timestamp()),
        )
        assistant_turn = self.history.append(
            request.resume_id,
            ChatMessage(role="assistant", content=reply, timestamp=utc_timestamp(after=user_turn.timestamp)),
        )
        return ChatResponse(ai_message=reply, timestamp=assistant_turn.timestamp)
