from typing import Annotated
from datetime import datetime
from pydantic import BaseModel, Field, StringConstraints


class SetRead(BaseModel):
    id: int
    set_number: int
    weight: float
    reps: int
    rpe: int | None = None
    is_pr: bool
    timestamp: datetime

    model_config = {"from_attributes": True}


class ExerciseBrief(BaseModel):
    id: int
    name: str
    muscle_group: str

    model_config = {"from_attributes": True}


class WorkoutExerciseRead(BaseModel):
    id: int
    order_index: int
    exercise: ExerciseBrief
    sets: list[SetRead] = []

    model_config = {"from_attributes": True}


class WorkoutSessionRead(BaseModel):
    id: int
    label: str
    start_time: datetime
    end_time: datetime | None = None
    is_active: bool
    total_sets: int
    total_volume: float
    muscle_groups: list[str] = []
    exercises: list[WorkoutExerciseRead] = []

    model_config = {"from_attributes": True}


class SessionPage(BaseModel):
    items: list[WorkoutSessionRead]
    total: int
    limit: int
    offset: int


class SetInput(BaseModel):
    weight: float = Field(ge=0, le=2000)
    reps: int = Field(ge=1, le=1000)


class ExerciseEdit(BaseModel):
    # Omit to keep the current exercise
    name: Annotated[str, StringConstraints(strip_whitespace=True, max_length=120)] | None = None
    sets: list[SetInput] = Field(min_length=1, max_length=50)


class HistorySummary(BaseModel):
    summary: str
