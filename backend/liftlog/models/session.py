from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, DateTime
from liftlog.db import Base, utcnow

class WorkoutSession(Base):
    __tablename__ = "workout_sessions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    label: Mapped[str] = mapped_column(String(120), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)

    exercises = relationship(
        "WorkoutExercise",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="WorkoutExercise.order_index",
    )

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    @property
    def total_sets(self) -> int:
        return sum(len(we.sets) for we in self.exercises)

    @property
    def total_volume(self) -> float:
        return sum(s.weight * s.reps for we in self.exercises for s in we.sets)

    @property
    def muscle_groups(self) -> list[str]:
        return sorted({we.exercise.muscle_group for we in self.exercises if we.exercise})
