"""Closed dispatch table of the assistant's tools.

Each tool validates its arguments with a pydantic model, runs against a fresh
``WorkoutService`` and answers with a short confirmation string the model can
relay verbatim. Domain misses never escape as exceptions; they come back as
text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from liftlog.db import SessionLocal
from liftlog.llm.client import ToolCall, ToolSpec
from liftlog.schemas.tools import (
    AllPersonalRecordsArgs,
    DeleteSetArgs,
    EditSetArgs,
    ExerciseHistoryArgs,
    LastExerciseStatsArgs,
    LogSetsArgs,
    LogWorkoutSessionArgs,
    PersonalRecordArgs,
    PlateMathArgs,
    RecentHistoryArgs,
)
from liftlog.services import plate_math
from liftlog.services.muscle_groups import guess_muscle_group, normalize_muscle_group
from liftlog.services.workout import NoActiveSessionError, WorkoutService

log = logging.getLogger(__name__)

NO_ACTIVE_SESSION = "No active workout session. Start one first!"


class ToolName(str, Enum):
    log_workout_session = "log_workout_session"
    log_sets = "log_sets"
    edit_set = "edit_set"
    delete_set = "delete_set"
    get_recent_history = "get_recent_history"
    get_exercise_history = "get_exercise_history"
    get_last_exercise_stats = "get_last_exercise_stats"
    get_personal_record = "get_personal_record"
    get_all_personal_records = "get_all_personal_records"
    calculate_plate_math = "calculate_plate_math"


@dataclass
class ToolOutcome:
    name: str
    text: str
    payload: dict[str, Any] | None = None
    ok: bool = True


def fmt_weight(w: float | None) -> str:
    return f"{(w or 0):g}"


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def _log_workout_session(svc: WorkoutService, args: LogWorkoutSessionArgs) -> ToolOutcome:
    sess = svc.start_session(args.focus_area)
    return ToolOutcome(ToolName.log_workout_session.value, f"Started {sess.label} session. Ready to log exercises!")


def _log_sets(svc: WorkoutService, args: LogSetsArgs) -> ToolOutcome:
    muscle_group = normalize_muscle_group(args.muscle_group) or guess_muscle_group(args.exercise_name)
    is_bodyweight = bool(args.is_bodyweight)

    lines: list[str] = []
    logged_sets: list[dict[str, Any]] = []
    first = None
    for _ in range(args.number_of_sets or 1):
        result = svc.log_set(
            args.exercise_name,
            args.weight_lbs,
            args.reps,
            rpe=args.rpe,
            muscle_group=muscle_group,
            is_bodyweight=is_bodyweight,
        )
        first = first or result
        weight = result.set.weight
        if is_bodyweight:
            shown = f"BW ({fmt_weight(weight)})" if weight > 0 else "BW"
        else:
            shown = f"{fmt_weight(weight)} lbs"
        line = f"Logged: {result.exercise.name} - {shown} x {result.set.reps}"
        if result.is_pr:
            line += " - NEW PR!"
        lines.append(line)
        logged_sets.append({
            "setNumber": result.set.set_number,
            "weight": weight,
            "reps": result.set.reps,
            "isPR": result.is_pr,
        })

    payload = {
        "exercises": [{
            "exerciseName": first.exercise.name,
            "sets": logged_sets,
            "isPR": any(s["isPR"] for s in logged_sets),
            "previousBest": first.previous_best,
        }]
    }
    return ToolOutcome(ToolName.log_sets.value, "\n".join(lines), payload=payload)


def _edit_set(svc: WorkoutService, args: EditSetArgs) -> ToolOutcome:
    result = svc.edit_set(args.exercise_name, args.set_identifier, args.new_weight, args.new_reps)
    if result is None:
        return ToolOutcome(ToolName.edit_set.value, "Couldn't find that set to edit.", ok=False)
    return ToolOutcome(
        ToolName.edit_set.value,
        f"Updated: {result.exercise_name} set {result.set_number} → {fmt_weight(result.weight)} lbs x {result.reps}",
    )


def _delete_set(svc: WorkoutService, args: DeleteSetArgs) -> ToolOutcome:
    if args.set_identifier.strip().lower() == "all":
        name = svc.delete_exercise(args.exercise_name)
        if name:
            return ToolOutcome(ToolName.delete_set.value, f"Deleted all sets of {name}.")
        return ToolOutcome(ToolName.delete_set.value, "Couldn't find sets to delete.", ok=False)

    result = svc.delete_set(args.exercise_name, args.set_identifier)
    if result is None:
        return ToolOutcome(ToolName.delete_set.value, "Couldn't find sets to delete.", ok=False)
    return ToolOutcome(ToolName.delete_set.value, f"Deleted set {result.set_number} from {result.exercise_name}.")


def _get_recent_history(svc: WorkoutService, args: RecentHistoryArgs) -> ToolOutcome:
    sessions = svc.get_recent_sessions(limit=args.limit or 3)
    if not sessions:
        return ToolOutcome(ToolName.get_recent_history.value, "No workout history found.")
    summaries = [f"{s.start_time:%A}: {s.label} ({len(s.exercises)} exercises)" for s in sessions]
    return ToolOutcome(ToolName.get_recent_history.value, "Recent workouts: " + "; ".join(summaries))


def _get_exercise_history(svc: WorkoutService, args: ExerciseHistoryArgs) -> ToolOutcome:
    entries = svc.get_exercise_history(args.exercise_name, limit=args.session_count or 3)
    if not entries:
        return ToolOutcome(ToolName.get_exercise_history.value, f"No previous data for {args.exercise_name}.")
    lines = [f"{entries[0].exercise_name} history:"]
    for e in entries:
        sets = ", ".join(f"{fmt_weight(s.weight)}x{s.reps}" for s in e.sets)
        lines.append(
            f"- {e.date:%a %b %d} ({e.label}): {sets}; "
            f"top {fmt_weight(e.max_weight)} lbs x {e.best_reps_at_max_weight}"
        )
    return ToolOutcome(ToolName.get_exercise_history.value, "\n".join(lines))


def _get_last_exercise_stats(svc: WorkoutService, args: LastExerciseStatsArgs) -> ToolOutcome:
    last = svc.get_last_exercise_stats(args.exercise_name)
    top = last.top_set if last is not None else None
    if top is None:
        return ToolOutcome(ToolName.get_last_exercise_stats.value, f"No previous data for {args.exercise_name}.")
    return ToolOutcome(
        ToolName.get_last_exercise_stats.value,
        f"Last {last.exercise.name} ({last.session.start_time:%a %b %d}): {fmt_weight(top.weight)} lbs x {top.reps}",
    )


def _get_personal_record(svc: WorkoutService, args: PersonalRecordArgs) -> ToolOutcome:
    pr = svc.get_pr(args.exercise_name)
    if pr is None or not pr.weight:
        return ToolOutcome(ToolName.get_personal_record.value, f"No PR recorded for {args.exercise_name} yet.")
    return ToolOutcome(ToolName.get_personal_record.value, f"PR for {pr.exercise_name}: {fmt_weight(pr.weight)} lbs")


def _get_all_personal_records(svc: WorkoutService, args: AllPersonalRecordsArgs) -> ToolOutcome:
    result = svc.get_all_prs(limit=args.limit or 5, muscle_group=args.muscle_group)
    if not result.entries:
        return ToolOutcome(ToolName.get_all_personal_records.value, "No PRs recorded yet.")
    text = "Your PRs: " + ", ".join(f"{pr.exercise_name}: {fmt_weight(pr.weight)} lbs" for pr in result.entries)
    remaining = result.total_count - len(result.entries)
    if remaining > 0:
        text += f" (and {remaining} more)"
    return ToolOutcome(ToolName.get_all_personal_records.value, text)


def _calculate_plate_math(_svc: WorkoutService, args: PlateMathArgs) -> ToolOutcome:
    result = plate_math.calculate(args.input_string)
    return ToolOutcome(
        ToolName.calculate_plate_math.value,
        f"Total weight: {result.total_weight} lbs. Breakdown: {result.breakdown}",
    )


@dataclass(frozen=True)
class Tool:
    name: ToolName
    description: str
    args_model: type[BaseModel]
    handler: Callable[[WorkoutService, Any], ToolOutcome]


TOOLS: dict[ToolName, Tool] = {
    t.name: t
    for t in (
        Tool(
            ToolName.log_workout_session,
            "Start a new workout session. Call when the user says they are starting a workout.",
            LogWorkoutSessionArgs,
            _log_workout_session,
        ),
        Tool(
            ToolName.log_sets,
            "Log completed sets for an exercise. Use numberOfSets to log several identical sets at once.",
            LogSetsArgs,
            _log_sets,
        ),
        Tool(
            ToolName.edit_set,
            "Edit a set that was already logged in the current session.",
            EditSetArgs,
            _edit_set,
        ),
        Tool(
            ToolName.delete_set,
            "Delete a set, or every set of an exercise with setIdentifier 'all', from the current session.",
            DeleteSetArgs,
            _delete_set,
        ),
        Tool(
            ToolName.get_recent_history,
            "Get the user's recent workout sessions.",
            RecentHistoryArgs,
            _get_recent_history,
        ),
        Tool(
            ToolName.get_exercise_history,
            "Get what the user did for one exercise in past sessions.",
            ExerciseHistoryArgs,
            _get_exercise_history,
        ),
        Tool(
            ToolName.get_last_exercise_stats,
            "Get the top set from the last time the user performed an exercise.",
            LastExerciseStatsArgs,
            _get_last_exercise_stats,
        ),
        Tool(
            ToolName.get_personal_record,
            "Get the personal record (heaviest weight) for an exercise.",
            PersonalRecordArgs,
            _get_personal_record,
        ),
        Tool(
            ToolName.get_all_personal_records,
            "Get the user's personal records across exercises, heaviest first.",
            AllPersonalRecordsArgs,
            _get_all_personal_records,
        ),
        Tool(
            ToolName.calculate_plate_math,
            "Convert gym plate slang into a total weight in pounds.",
            PlateMathArgs,
            _calculate_plate_math,
        ),
    )
}


def _strip_titles(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _strip_titles(v) for k, v in node.items() if k != "title"}
    if isinstance(node, list):
        return [_strip_titles(v) for v in node]
    return node


def parameters_schema(model: type[BaseModel]) -> dict[str, Any]:
    return _strip_titles(model.model_json_schema(by_alias=True))


class ToolRegistry:
    def __init__(self, session_factory: sessionmaker | Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def specs(self) -> list[ToolSpec]:
        return [
            ToolSpec(name=t.name.value, description=t.description, parameters=parameters_schema(t.args_model))
            for t in TOOLS.values()
        ]

    def execute(self, call: ToolCall) -> ToolOutcome:
        try:
            name = ToolName(call.name)
        except ValueError:
            log.warning("model called unknown tool %r", call.name)
            return ToolOutcome(call.name, f"Unknown function: {call.name}", ok=False)
        tool = TOOLS[name]

        try:
            args = tool.args_model.model_validate(call.arguments)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "arguments" for err in e.errors())
            return ToolOutcome(name.value, f"Error: invalid arguments for {name.value}: {fields}", ok=False)

        db = self.session_factory()
        try:
            outcome = tool.handler(WorkoutService(db), args)
            log.info("tool %s ok=%s", name.value, outcome.ok)
            return outcome
        except NoActiveSessionError:
            db.rollback()
            return ToolOutcome(name.value, NO_ACTIVE_SESSION, ok=False)
        except (SQLAlchemyError, ValueError) as e:
            db.rollback()
            log.exception("tool %s failed", name.value)
            return ToolOutcome(name.value, f"Error: {e}", ok=False)
        finally:
            db.close()
