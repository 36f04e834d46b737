from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, ForeignKey, UniqueConstraint
from liftlog.db import Base

class WorkoutExercise(Base):
    """One occurrence of a movement inside a session."""
    __tablename__ = "workout_exercises"
    __table_args__ = (UniqueConstraint("session_id", "exercise_id", name="uq_workout_exercise_session_exercise"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("workout_sessions.id", ondelete="CASCADE"), index=True)
    exercise_id: Mapped[int] = mapped_column(ForeignKey("exercises.id", ondelete="CASCADE"), index=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    session = relationship("WorkoutSession", back_populates="exercises")
    exercise = relationship("Exercise", back_populates="history")
    sets = relationship(
        "WorkoutSet",
        back_populates="workout_exercise",
        cascade="all, delete-orphan",
        order_by="WorkoutSet.set_number",
    )

    @property
    def top_set(self):
        return max(self.sets, key=lambda s: (s.weight, s.reps), default=None)
