"""
Assembles the conversation sent to the chat model.

The system prompt is built from the stored profile (resume text, last analysis
and job description), the stored history is cut to fit what is left of the
character budget, and the incoming user message is appended so that turns keep
alternating user/assistant.
"""
import logging
import re
from typing import List, Optional

from ...schemas.chat import ChatContext, ChatMessage, ChatPrompt
from ...schemas.resume import AnalysisResult

logger = logging.getLogger("chat_context")

ELLIPSIS = "..."
WHITESPACE = re.compile(r"\s")

PERSONA = (
    "You are an Expert Senior Technical Recruiter and Career Coach with 15+ years of experience.\n"
    "Your goal is to help the candidate improve their resume and interview preparation "
    "based on the specific Job Description provided."
)

INSTRUCTIONS = (
    "=== INSTRUCTIONS ===\n"
    "1. **Be Direct & Actionable**: Avoid generic fluff. Give specific feedback.\n"
    "2. **Focus on the Gap**: Prioritize addressing missing skills and weak areas.\n"
    "3. **Roleplay**: If asked about interview questions, act as the hiring manager for this specific role.\n"
    "4. **Format**: Use Markdown (bolding, lists) to make your advice easy to read.\n"
    "5. **Tone**: Professional, encouraging, but honest and high-standards."
)

CLOSING = "Based on this context, answer the user's questions."


def truncate(text: Optional[str], max_length: int) -> str:
    """
    Shortens ``text`` to at most ``max_length`` characters plus an ellipsis,
    cutting at the last whitespace before the limit when there is one.
    """
    if not text or len(text) <= max_length:
        return text or ""

    cut = text[:max_length]
    last_space = max((m.start() for m in WHITESPACE.finditer(cut)), default=-1)
    if last_space > 0:
        cut = cut[:last_space]
    return cut + ELLIPSIS


def select_history(history: List[ChatMessage], budget: int) -> List[ChatMessage]:
    """
    Keeps the most recent messages whose combined content fits ``budget``.
    Selection stops at the first message that would overflow, so the kept
    messages are always a contiguous tail of the history, in chronological order.
    """
    kept: List[ChatMessage] = []
    running = 0
    for message in reversed(history):
        size = len(message.content)
        if running + size > budget:
            break
        kept.append(message)
        running += size
    kept.reverse()
    return kept


def append_user_turn(messages: List[ChatMessage], content: str, timestamp: str = "") -> List[ChatMessage]:
    if not messages or messages[-1].role == "assistant":
        return messages + [ChatMessage(role="user", content=content, timestamp=timestamp)]

    last = messages[-1]
    if last.content.strip() == content.strip():
        logger.info("Incoming message duplicates the trailing user turn, not appending")
        return list(messages)

    # Two user turns in a row: fold them into one
    merged = ChatMessage(role="user", content=f"{last.content}\n\n{content}", timestamp=last.timestamp)
    return messages[:-1] + [merged]


class ChatContextBuilder:
    def __init__(self, max_context_length: int = 100000, cv_chars: int = 3000, jd_chars: int = 2000):
        self.max_context_length = max_context_length
        self.cv_chars = cv_chars
        self.jd_chars = jd_chars

    def system_prompt(
        self,
        cv_text: str,
        job_description: Optional[str] = None,
        last_analysis: Optional[AnalysisResult] = None,
    ) -> str:
        name = None
        if last_analysis is not None and last_analysis.resume_entities:
            name = last_analysis.resume_entities.name

        lines = [PERSONA, "", "=== CONTEXT ===", f"CANDIDATE NAME: {name or 'Candidate'}"]
        if last_analysis is not None:
            lines.append(f"FIT SCORE: {last_analysis.fit_score:.1f}/100")
            if last_analysis.missing_skills:
                lines.append(f"MISSING SKILLS: {', '.join(last_analysis.missing_skills)}")

        lines += ["", INSTRUCTIONS, "", "=== CANDIDATE RESUME ===", truncate(cv_text, self.cv_chars), ""]
        if job_description:
            lines += ["=== TARGET JOB DESCRIPTION ===", truncate(job_description, self.jd_chars), ""]
        lines.append(CLOSING)
        return "\n".join(lines)

    def build(self, context: ChatContext, timestamp: str = "") -> ChatPrompt:
        system_prompt = self.system_prompt(context.cv_text, context.job_description, context.last_analysis)
        remaining = self.max_context_length - len(system_prompt)

        kept = select_history(context.history, remaining)
        if len(kept) < len(context.history):
            logger.info(f"Dropped {len(context.history) - len(kept)} older messages to fit the context budget")

        messages = append_user_turn(kept, context.user_message, timestamp)
        return ChatPrompt(system_prompt=system_prompt, messages=messages)
