"""Argument contracts for the assistant's tools.

Field aliases are the wire names the model sees; they must not change.
"""
from typing import Annotated
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Keep max length via Field
ExerciseStr = Annotated[str, Field(min_length=1, max_length=120)]


def _clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def _non_blank(v: str) -> str:
    v2 = v.strip()
    if not v2:
        raise ValueError("cannot be blank")
    return v2


class ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ExerciseToolArgs(ToolArgs):
    exercise_name: ExerciseStr = Field(alias="exerciseName", description="The exercise name (e.g., 'Bench Press', 'Squat')")

    @field_validator("exercise_name")
    @classmethod
    def exercise_non_blank(cls, v: str) -> str:
        return _non_blank(v)  # trimmed, so matching sees clean text


class LogWorkoutSessionArgs(ToolArgs):
    focus_area: str = Field(
        alias="focusArea",
        max_length=120,
        description="The focus of the workout session (e.g., 'Push Day', 'Pull Day', 'Leg Day')",
    )

    @field_validator("focus_area")
    @classmethod
    def focus_non_blank(cls, v: str) -> str:
        return _non_blank(v)


class LogSetsArgs(ExerciseToolArgs):
    weight_lbs: float | None = Field(
        default=None, alias="weightLbs", ge=0, description="Weight in pounds. Use the number from user input."
    )
    reps: int = Field(ge=1, description="Number of repetitions completed")
    number_of_sets: int | None = Field(default=None, alias="numberOfSets", description="Number of sets to log (default 1)")
    rpe: int | None = Field(default=None, description="Rate of Perceived Exertion from 1-10")
    is_bodyweight: bool | None = Field(
        default=None, alias="isBodyweight", description="True if bodyweight exercise with no added weight"
    )
    muscle_group: str | None = Field(
        default=None,
        alias="muscleGroup",
        description="Primary muscle group. One of: Chest, Back, Shoulders, Arms, Legs, Core, Other",
    )

    @field_validator("number_of_sets")
    @classmethod
    def clamp_sets(cls, v: int | None) -> int:
        return _clamp(v if v is not None else 1, 1, 20)

    @field_validator("rpe")
    @classmethod
    def drop_out_of_range_rpe(cls, v: int | None) -> int | None:
        # A bad RPE should not cost the user the whole set
        return v if v is not None and 1 <= v <= 10 else None


class EditSetArgs(ExerciseToolArgs):
    set_identifier: str = Field(
        default="last", alias="setIdentifier", description="Which set to edit: 'last', 'first', or set number"
    )
    new_weight: float | None = Field(default=None, alias="newWeight", ge=0, description="New weight in pounds")
    new_reps: int | None = Field(default=None, alias="newReps", ge=1, description="New rep count")

    @field_validator("set_identifier", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        return "last" if v is None else str(v)


class DeleteSetArgs(ExerciseToolArgs):
    set_identifier: str = Field(
        default="last", alias="setIdentifier", description="Which set to delete: 'last', 'first', 'all', or set number"
    )

    @field_validator("set_identifier", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        return "last" if v is None else str(v)


class RecentHistoryArgs(ToolArgs):
    limit: int | None = Field(default=3, description="Number of sessions to retrieve (default 3, max 10)")

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int | None) -> int:
        return _clamp(v if v is not None else 3, 1, 10)


class ExerciseHistoryArgs(ExerciseToolArgs):
    session_count: int | None = Field(
        default=3, alias="sessionCount", description="How many past sessions to include (default 3, max 5)"
    )

    @field_validator("session_count")
    @classmethod
    def clamp_count(cls, v: int | None) -> int:
        return _clamp(v if v is not None else 3, 1, 5)


class LastExerciseStatsArgs(ExerciseToolArgs):
    pass


class PersonalRecordArgs(ExerciseToolArgs):
    pass


class AllPersonalRecordsArgs(ToolArgs):
    limit: int | None = Field(default=5, description="Maximum number of PRs to return (default 5, max 20)")
    muscle_group: str | None = Field(default=None, alias="muscleGroup", description="Optional filter by muscle group")

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int | None) -> int:
        return _clamp(v if v is not None else 5, 1, 20)

    @field_validator("muscle_group")
    @classmethod
    def blank_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class PlateMathArgs(ToolArgs):
    input_string: str = Field(
        alias="inputString",
        max_length=200,
        description="The gym slang to convert (e.g., '2 plates', '1 plate and a 25')",
    )

    @field_validator("input_string")
    @classmethod
    def input_non_blank(cls, v: str) -> str:
        return _non_blank(v)
