from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, Float, Boolean, DateTime, CheckConstraint, false
from liftlog.db import Base, utcnow

class WorkoutSet(Base):
    __tablename__ = "workout_sets"
    __table_args__ = (
        CheckConstraint("weight >= 0", name="ck_workout_sets_weight_non_negative"),
        CheckConstraint("reps > 0", name="ck_workout_sets_reps_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    workout_exercise_id: Mapped[int] = mapped_column(ForeignKey("workout_exercises.id", ondelete="CASCADE"), index=True)
    set_number: Mapped[int] = mapped_column(Integer, nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    rpe: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Decided when the set is logged; edits leave it alone
    is_pr: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    workout_exercise = relationship("WorkoutExercise", back_populates="sets")

    @property
    def volume(self) -> float:
        return self.weight * self.reps
