from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Float, Boolean, DateTime, false
from liftlog.db import Base, utcnow

MUSCLE_GROUPS = ("Chest", "Back", "Shoulders", "Arms", "Legs", "Core", "Other")

class Exercise(Base):
    __tablename__ = "exercises"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # Canonical, title-cased name; unique across hidden and visible entries
    name: Mapped[str] = mapped_column(String(120), unique=True, index=True, nullable=False)
    muscle_group: Mapped[str] = mapped_column(String(32), nullable=False, default="Other")
    best_weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    best_volume: Mapped[float | None] = mapped_column(Float, nullable=True)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Hard removal of an exercise takes its logged history with it
    history = relationship("WorkoutExercise", back_populates="exercise", cascade="all")

    def __repr__(self) -> str:
        return f"<Exercise {self.id} {self.name!r}>"
