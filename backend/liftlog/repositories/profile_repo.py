from __future__ import annotations
from typing import Optional
from sqlalchemy import select

from liftlog.models import UserProfile
from liftlog.repositories.base import BaseRepository

class ProfileRepository(BaseRepository[UserProfile]):
    """The store is single-user: there is at most one profile row."""
    model = UserProfile

    def get_profile(self) -> Optional[UserProfile]:
        stmt = select(UserProfile).order_by(UserProfile.id.asc()).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()

    def body_weight(self) -> float | None:
        profile = self.get_profile()
        return profile.weight_lbs if profile else None

    def upsert(
        self,
        *,
        name: str | None = None,
        weight_lbs: float | None = None,
        height_inches: float | None = None,
    ) -> UserProfile:
        profile = self.get_profile()
        if profile is None:
            profile = UserProfile(name=name or "")
            self.db.add(profile)
        elif name is not None:
            profile.name = name
        if weight_lbs is not None:
            profile.weight_lbs = weight_lbs
        if height_inches is not None:
            profile.height_inches = height_inches
        self.db.commit()
        self.db.refresh(profile)
        return profile
