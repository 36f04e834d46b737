from typing import Annotated
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

ExerciseStr = Annotated[str, Field(max_length=120)]


class ExerciseRead(BaseModel):
    id: int
    name: str
    muscle_group: str
    best_weight: float | None = None
    best_volume: float | None = None
    hidden: bool

    model_config = {"from_attributes": True}


class ExerciseMatch(BaseModel):
    exercise: ExerciseRead
    confidence: float


class ExerciseRename(BaseModel):
    name: ExerciseStr

    @field_validator("name")
    @classmethod
    def name_non_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("name cannot be blank")
        return v2


class ExerciseHide(BaseModel):
    hidden: bool = True


class PersonalRecordRead(BaseModel):
    exercise_name: str
    weight: float
    volume: float
    muscle_group: str

    model_config = {"from_attributes": True}


class PersonalRecordsRead(BaseModel):
    entries: list[PersonalRecordRead]
    total_count: int


class SetEntryRead(BaseModel):
    weight: float
    reps: int

    model_config = {"from_attributes": True}


class ExerciseHistoryRead(BaseModel):
    exercise_name: str
    date: datetime
    label: str
    sets: list[SetEntryRead]
    max_weight: float
    best_reps_at_max_weight: int

    model_config = {"from_attributes": True}
