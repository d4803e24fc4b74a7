from typing import List

from ...models.item import ANALYSIS_PREFIX, ENTITY_ANALYSIS, analysis_sk, resume_pk
from ...schemas.resume import AnalysisRecord
from .base import ItemStore


class AnalysisStore:
    """Append-only audit of each analysis run for a resume."""

    def __init__(self, items: ItemStore):
        self.items = items

    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        self.items.put(
            pk=resume_pk(record.resume_id),
            sk=analysis_sk(record.timestamp),
            entity_type=ENTITY_ANALYSIS,
            resume_id=record.resume_id,
            data=record.model_dump(mode="json", by_alias=True),
        )
        return record

    def list(self, resume_id: str) -> List[AnalysisRecord]:
        rows = self.items.query_partition(resume_pk(resume_id), ANALYSIS_PREFIX)
        return [AnalysisRecord.model_validate(data) for data in rows]
