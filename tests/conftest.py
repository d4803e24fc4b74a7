"""
Pytest configuration and shared fixtures for all tests.

Stores run against an in-memory SQLite database and object storage lives in
pytest's tmp_path, so no test needs external services.
"""

import io

import pytest
from docx import Document

from resume_insight.database import build_engine, build_session_factory, init_table
from resume_insight.services.storage.analysis_store import AnalysisStore
from resume_insight.services.storage.base import ItemStore
from resume_insight.services.storage.chat_history_store import ChatHistoryStore
from resume_insight.services.storage.profile_store import ProfileStore
from resume_insight.utils.file_handler import ObjectStorage

CV_TEXT = "Jane Doe\njane.doe@example.com\n555-123-4567\nSkills: Python, SQL"
JOB_DESCRIPTION = "We need Python, SQL and Kubernetes."


# ============================================================================
# STORAGE FIXTURES
# ============================================================================

@pytest.fixture
def item_store():
    """A fresh single-table item store on an in-memory database."""
    engine = build_engine("sqlite://")
    table = init_table(engine, "TestItems")
    yield ItemStore(build_session_factory(engine), table)
    engine.dispose()


@pytest.fixture
def profile_store(item_store):
    return ProfileStore(item_store)


@pytest.fixture
def analysis_store(item_store):
    return AnalysisStore(item_store)


@pytest.fixture
def chat_store(item_store):
    return ChatHistoryStore(item_store)


@pytest.fixture
def object_storage(tmp_path):
    return ObjectStorage(str(tmp_path / "objects"))


# ============================================================================
# DOCUMENT FIXTURES
# ============================================================================

def build_docx(paragraphs, table_cells=None) -> bytes:
    """Builds a .docx in memory with the given paragraphs and an optional 1-row table."""
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table_cells:
        table = doc.add_table(rows=1, cols=len(table_cells))
        for i, text in enumerate(table_cells):
            table.cell(0, i).text = text
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def cv_docx_bytes():
    """The sample CV as a Word document."""
    return build_docx(CV_TEXT.split("\n"))
