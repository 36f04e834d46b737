from __future__ import annotations
from sqlalchemy import select

from liftlog.models import WorkoutExercise, WorkoutSet
from liftlog.repositories.base import BaseRepository

class WorkoutSetRepository(BaseRepository[WorkoutSet]):
    model = WorkoutSet

    def list_for_exercise(self, exercise_id: int) -> list[WorkoutSet]:
        """Every set ever logged for an exercise, oldest first."""
        stmt = (
            select(WorkoutSet)
            .join(WorkoutExercise, WorkoutSet.workout_exercise_id == WorkoutExercise.id)
            .where(WorkoutExercise.exercise_id == exercise_id)
            .order_by(WorkoutSet.timestamp.asc(), WorkoutSet.id.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def create(
        self,
        workout_exercise: WorkoutExercise,
        *,
        set_number: int,
        weight: float,
        reps: int,
        rpe: int | None,
        is_pr: bool,
    ) -> WorkoutSet:
        s = WorkoutSet(set_number=set_number, weight=weight, reps=reps, rpe=rpe, is_pr=is_pr)
        workout_exercise.sets.append(s)
        return self.add_and_refresh(s)
