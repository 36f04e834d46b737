from __future__ import annotations
from typing import Iterable, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from liftlog.models import Exercise
from liftlog.repositories.base import BaseRepository

class ExerciseRepository(BaseRepository[Exercise]):
    model = Exercise

    # READS
    def list_all(self, *, include_hidden: bool = True) -> list[Exercise]:
        stmt = select(Exercise).order_by(Exercise.name.asc())
        if not include_hidden:
            stmt = stmt.where(Exercise.hidden.is_(False))
        return list(self.db.execute(stmt).scalars().all())

    def list_by_muscle_groups(self, groups: Iterable[str]) -> list[Exercise]:
        lowered = [g.lower() for g in groups]
        stmt = (
            select(Exercise)
            .where(func.lower(Exercise.muscle_group).in_(lowered), Exercise.hidden.is_(False))
            .order_by(Exercise.name.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_with_records(self, *, muscle_group: str | None = None) -> list[Exercise]:
        """Exercises with a positive best weight, heaviest first."""
        stmt = select(Exercise).where(Exercise.best_weight > 0)
        if muscle_group:
            stmt = stmt.where(func.lower(Exercise.muscle_group).contains(muscle_group.lower()))
        stmt = stmt.order_by(Exercise.best_weight.desc(), Exercise.name.asc())
        return list(self.db.execute(stmt).scalars().all())

    # WRITES
    def create(self, *, name: str, muscle_group: str) -> Exercise:
        return self.add_and_refresh(Exercise(name=name, muscle_group=muscle_group))

    def rename(self, exercise_id: int, *, name: str) -> Optional[Exercise]:
        ex = self.get(exercise_id)
        if not ex:
            return None
        ex.name = name
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # Re-raise a clean marker the router can map to 400
            raise ValueError("exercise_name_exists")
        self.db.refresh(ex)
        return ex

    def set_hidden(self, exercise_id: int, *, hidden: bool) -> Optional[Exercise]:
        ex = self.get(exercise_id)
        if not ex:
            return None
        ex.hidden = hidden
        self.db.commit()
        self.db.refresh(ex)
        return ex
