"""
Tests for the chat context builder: truncation, budgeted history selection,
user-turn appending and the system prompt.
"""

import pytest

from resume_insight.schemas.chat import ChatContext, ChatMessage
from resume_insight.schemas.resume import AnalysisResult, ExtractedEntities
from resume_insight.services.llm.chat_context import (
    ChatContextBuilder,
    append_user_turn,
    select_history,
    truncate,
)

from .conftest import CV_TEXT, JOB_DESCRIPTION


def msg(role, content, timestamp=""):
    return ChatMessage(role=role, content=content, timestamp=timestamp)


@pytest.fixture
def analysis():
    return AnalysisResult(
        fit_score=66.666,
        matched_skills=["Python", "SQL"],
        missing_skills=["Kubernetes", "Docker"],
        resume_entities=ExtractedEntities(name="Jane Doe"),
        job_description=JOB_DESCRIPTION,
    )


# ============================================================================
# TRUNCATE
# ============================================================================

def test_truncate_short_text_unchanged():
    assert truncate("hello world", 11) == "hello world"


def test_truncate_cuts_at_last_whitespace():
    assert truncate("hello world foo", 8) == "hello..."


def test_truncate_without_whitespace_cuts_at_limit():
    assert truncate("abcdefghij", 5) == "abcde..."


def test_truncate_ignores_whitespace_at_index_zero():
    assert truncate(" abcdef", 4) == " abc..."


@pytest.mark.parametrize("limit", [1, 5, 17, 40, 200])
def test_truncate_length_bound(limit):
    text = "Senior engineer with a decade of Python and SQL experience across teams. " * 3
    assert len(truncate(text, limit)) <= limit + 3


def test_truncate_empty():
    assert truncate(None, 10) == ""
    assert truncate("", 10) == ""


# ============================================================================
# HISTORY SELECTION
# ============================================================================

def test_select_history_keeps_newest_within_budget():
    history = [msg("user", "aaaa"), msg("assistant", "bbbb"), msg("user", "cccc"), msg("assistant", "dddd")]

    kept = select_history(history, 9)

    assert [m.content for m in kept] == ["cccc", "dddd"]


def test_select_history_stops_at_first_overflow():
    """A small old message past an overflowing one is not picked up."""
    history = [msg("user", "a"), msg("assistant", "x" * 50), msg("user", "cccc")]

    kept = select_history(history, 10)

    assert [m.content for m in kept] == ["cccc"]


def test_select_history_with_exhausted_budget():
    assert select_history([msg("user", "hi")], 0) == []
    assert select_history([msg("user", "hi")], -5) == []


# ============================================================================
# APPENDING THE USER TURN
# ============================================================================

def test_append_to_empty_history():
    messages = append_user_turn([], "What should I improve?")

    assert len(messages) == 1
    assert messages[0].role == "user"
    assert messages[0].content == "What should I improve?"


def test_append_after_assistant():
    messages = append_user_turn([msg("user", "Hi"), msg("assistant", "Hello")], "Next?")

    assert [m.role for m in messages] == ["user", "assistant", "user"]


def test_duplicate_trailing_user_message_is_not_appended():
    kept = [msg("assistant", "Hello"), msg("user", "What should I improve?")]

    messages = append_user_turn(kept, "  What should I improve?  ")

    assert messages == kept


def test_differing_trailing_user_message_is_merged():
    kept = [msg("assistant", "Hello"), msg("user", "First question", "2024-01-01T00:00:00+00:00")]

    messages = append_user_turn(kept, "Second question")

    assert len(messages) == 2
    assert messages[-1].role == "user"
    assert messages[-1].content == "First question\n\nSecond question"
    assert messages[-1].timestamp == "2024-01-01T00:00:00+00:00"


# ============================================================================
# SYSTEM PROMPT + BUILD
# ============================================================================

def test_system_prompt_with_analysis(analysis):
    prompt = ChatContextBuilder().system_prompt(CV_TEXT, JOB_DESCRIPTION, analysis)

    assert prompt.startswith("You are an Expert Senior Technical Recruiter")
    assert "CANDIDATE NAME: Jane Doe" in prompt
    assert "FIT SCORE: 66.7/100" in prompt
    assert "MISSING SKILLS: Kubernetes, Docker" in prompt
    assert "=== CANDIDATE RESUME ===\n" + CV_TEXT in prompt
    assert "=== TARGET JOB DESCRIPTION ===\n" + JOB_DESCRIPTION in prompt
    assert prompt.endswith("Based on this context, answer the user's questions.")


def test_system_prompt_without_analysis_or_job_description():
    prompt = ChatContextBuilder().system_prompt(CV_TEXT)

    assert "CANDIDATE NAME: Candidate" in prompt
    assert "FIT SCORE" not in prompt
    assert "MISSING SKILLS" not in prompt
    assert "TARGET JOB DESCRIPTION" not in prompt


def test_system_prompt_truncates_cv_and_job_description():
    builder = ChatContextBuilder(cv_chars=20, jd_chars=10)
    cv = "word " * 100
    jd = "need " * 100

    prompt = builder.system_prompt(cv, jd)

    assert truncate(cv, 20) in prompt
    assert truncate(jd, 10) in prompt
    assert cv not in prompt


def test_empty_history_yields_single_user_message():
    context = ChatContext(cv_text=CV_TEXT, user_message="What should I improve?")

    prompt = ChatContextBuilder().build(context)

    assert len(prompt.messages) == 1
    assert prompt.messages[0].role == "user"
    assert prompt.messages[0].content == "What should I improve?"


def test_build_respects_budget_left_by_system_prompt():
    builder = ChatContextBuilder()
    system_length = len(builder.system_prompt(CV_TEXT))
    builder.max_context_length = system_length + 10
    history = [msg("user", "first"), msg("assistant", "reply"), msg("user", "again"), msg("assistant", "fine!")]

    prompt = builder.build(ChatContext(cv_text=CV_TEXT, user_message="Next?", history=history))

    assert [m.content for m in prompt.messages] == ["again", "fine!", "Next?"]
    assert [m.role for m in prompt.messages] == ["user", "assistant", "user"]
