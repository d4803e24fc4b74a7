from datetime import datetime

from sqlalchemy import JSON, TIMESTAMP, Column, Index, MetaData, String, Table
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

PROFILE_SK = "PROFILE"
ANALYSIS_PREFIX = "ANALYSIS#"
CHAT_PREFIX = "CHAT#"

ENTITY_PROFILE = "Profile"
ENTITY_ANALYSIS = "Analysis"
ENTITY_CHAT = "Chat"


def resume_pk(resume_id: str) -> str:
    return f"RESUME#{resume_id}"


def analysis_sk(timestamp: datetime) -> str:
    return f"{ANALYSIS_PREFIX}{timestamp.isoformat()}"


def chat_sk(timestamp: str) -> str:
    return f"{CHAT_PREFIX}{timestamp}"


def items_table(metadata: MetaData, table_name: str) -> Table:
    """
    One table holds profiles, analysis records and chat messages, addressed by
    (partition key, sort key). The (user_id, user_timestamp) index backs the
    per-user listing.
    """
    return Table(
        table_name,
        metadata,
        Column("pk", String(512), primary_key=True),
        Column("sk", String(255), primary_key=True),
        Column("entity_type", String(50), nullable=False),
        Column("resume_id", String(255), nullable=False),
        Column("user_id", String(255), nullable=True),
        Column("user_timestamp", String(64), nullable=True),
        Column("s3_key", String(1024), nullable=True),
        Column("data", JSON().with_variant(JSONB, "postgresql"), nullable=False),
        Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=func.now()),
        Index(f"ix_{table_name}_user", "user_id", "user_timestamp"),
        Index(f"ix_{table_name}_s3_key", "s3_key"),
    )
