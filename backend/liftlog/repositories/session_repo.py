from __future__ import annotations
from typing import Optional
from sqlalchemy import select, func

from liftlog.models import WorkoutSession
from liftlog.repositories.base import BaseRepository, Page

class WorkoutSessionRepository(BaseRepository[WorkoutSession]):
    model = WorkoutSession

    def list_active(self) -> list[WorkoutSession]:
        stmt = select(WorkoutSession).where(WorkoutSession.end_time.is_(None))\
                                     .order_by(WorkoutSession.start_time.desc(), WorkoutSession.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def get_active(self) -> Optional[WorkoutSession]:
        active = self.list_active()
        return active[0] if active else None

    def list_recent(self, *, limit: int = 50, offset: int = 0) -> Page[WorkoutSession]:
        stmt = select(WorkoutSession).order_by(WorkoutSession.start_time.desc(), WorkoutSession.id.desc())
        return self.page_from_stmt(stmt, limit=limit, offset=offset)

    def list_all_recent_first(self) -> list[WorkoutSession]:
        stmt = select(WorkoutSession).order_by(WorkoutSession.start_time.desc(), WorkoutSession.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def search_by_label(self, query: str) -> list[WorkoutSession]:
        stmt = select(WorkoutSession)\
            .where(func.lower(WorkoutSession.label).contains(query.lower()))\
            .order_by(WorkoutSession.start_time.desc(), WorkoutSession.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def create(self, *, label: str) -> WorkoutSession:
        return self.add_and_refresh(WorkoutSession(label=label))
