from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ...models.item import CHAT_PREFIX, ENTITY_CHAT, chat_sk, resume_pk
from ...schemas.chat import ChatMessage
from .base import ItemStore


def utc_timestamp(after: Optional[str] = None) -> str:
    """
    Current UTC time as a fixed-width ISO string, forced strictly past ``after``
    so sort keys written back to back never collide.
    """
    now = datetime.now(timezone.utc)
    if after:
        floor = datetime.fromisoformat(after) + timedelta(microseconds=1)
        now = max(now, floor)
    return now.isoformat(timespec="microseconds")


class ChatHistoryStore:
    def __init__(self, items: ItemStore):
        self.items = items

    def append(self, resume_id: str, message: ChatMessage) -> ChatMessage:
        if not message.timestamp:
            message = message.model_copy(update={"timestamp": utc_timestamp()})
        self.items.put(
            pk=resume_pk(resume_id),
            sk=chat_sk(message.timestamp),
            entity_type=ENTITY_CHAT,
            resume_id=resume_id,
            data=message.model_dump(mode="json", by_alias=True),
        )
        return message

    def history(self, resume_id: str) -> List[ChatMessage]:
        """All stored messages for the resume, oldest first."""
        rows = self.items.query_partition(resume_pk(resume_id), CHAT_PREFIX)
        return [ChatMessage.model_validate(data) for data in rows]
