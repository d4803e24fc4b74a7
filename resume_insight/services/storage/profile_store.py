import logging
from typing import List, Optional

from ...exceptions import ValidationError
from ...models.item import ENTITY_PROFILE, PROFILE_SK, resume_pk
from ...schemas.resume import PipelineStatus, Profile
from .base import ItemStore

logger = logging.getLogger("profile_store")

SORT_FIELDS = ("createdAt", "fitScore")
SORT_ORDERS = ("asc", "desc")


def _fit_score(profile: Profile) -> float:
    return profile.last_analysis.fit_score if profile.last_analysis else 0.0


class ProfileStore:
    def __init__(self, items: ItemStore):
        self.items = items

    def save(self, profile: Profile) -> Profile:
        self.items.put(
            pk=resume_pk(profile.resume_id),
            sk=PROFILE_SK,
            entity_type=ENTITY_PROFILE,
            resume_id=profile.resume_id,
            data=profile.model_dump(mode="json", by_alias=True),
            user_id=profile.user_id,
            user_timestamp=profile.created_at.isoformat(),
            s3_key=profile.s3_key,
        )
        logger.info(f"Saved profile {profile.resume_id} ({profile.status.value})")
        return profile

    def get(self, resume_id: str) -> Optional[Profile]:
        data = self.items.get(resume_pk(resume_id), PROFILE_SK)
        return Profile.model_validate(data) if data else None

    def get_by_s3_key(self, s3_key: str) -> Optional[Profile]:
        data = self.items.find_by_s3_key(s3_key, ENTITY_PROFILE)
        return Profile.model_validate(data) if data else None

    def set_status(
        self,
        resume_id: str,
        status: PipelineStatus,
        error_message: Optional[str] = None,
        correlation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        s3_key: Optional[str] = None,
    ) -> Profile:
        """Records pipeline progress, creating a stub profile when none exists yet."""
        profile = self.get(resume_id) or Profile(resume_id=resume_id, user_id=user_id, s3_key=s3_key)
        profile.status = status
        profile.error_message = error_message
        if correlation_id:
            profile.correlation_id = correlation_id
        if user_id and not profile.user_id:
            profile.user_id = user_id
        if s3_key and not profile.s3_key:
            profile.s3_key = s3_key
        return self.save(profile)

    def list_by_user(self, user_id: str, sort_by: str = "createdAt", order: str = "desc") -> List[Profile]:
        errors = []
        if sort_by not in SORT_FIELDS:
            errors.append(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
        if order not in SORT_ORDERS:
            errors.append(f"order must be one of: {', '.join(SORT_ORDERS)}")
        if errors:
            raise ValidationError(errors)

        # The user index is ordered by creation time; other orders are sorted here
        profiles = [Profile.model_validate(data) for data in self.items.query_user(user_id, ENTITY_PROFILE)]
        key = _fit_score if sort_by == "fitScore" else (lambda p: p.created_at)
        profiles.sort(key=key, reverse=(order == "desc"))
        return profiles
