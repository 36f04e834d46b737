"""Session / exercise / set state machine and personal-record bookkeeping.

A session is NONE -> ACTIVE -> ENDED. At most one session is active at any
time: the constructor repairs the store if it finds more than one, and
``start_session`` ends whatever is active before opening a new one.

Every public mutation commits before returning, so a renumbering or a PR cache
update is never observed half-applied by the next reader.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from liftlog.db import utcnow
from liftlog.models import Exercise, WorkoutExercise, WorkoutSession, WorkoutSet
from liftlog.repositories.exercise_repo import ExerciseRepository
from liftlog.repositories.profile_repo import ProfileRepository
from liftlog.repositories.session_repo import WorkoutSessionRepository
from liftlog.repositories.set_repo import WorkoutSetRepository
from liftlog.services.matching import ExerciseMatcher, normalize, normalize_for_storage
from liftlog.services.muscle_groups import groups_for_label
from liftlog.settings import get_settings

log = logging.getLogger(__name__)


class NoActiveSessionError(LookupError):
    """Raised when a set is logged while no session is accepting sets."""


@dataclass
class LogSetResult:
    set: WorkoutSet
    is_pr: bool
    previous_best: float | None
    exercise: Exercise


@dataclass
class PersonalRecord:
    exercise_name: str
    weight: float
    volume: float
    muscle_group: str


@dataclass
class AllPRsResult:
    entries: list[PersonalRecord]
    total_count: int


@dataclass
class SetEntry:
    weight: float
    reps: int


@dataclass
class ExerciseHistoryEntry:
    exercise_name: str
    date: datetime
    label: str
    sets: list[SetEntry] = field(default_factory=list)
    max_weight: float = 0.0
    best_reps_at_max_weight: int = 0


@dataclass
class EditSetResult:
    exercise_name: str
    set_number: int
    weight: float
    reps: int


@dataclass
class DeleteSetResult:
    exercise_name: str
    set_number: int


def pick_set(ordered: list[WorkoutSet], identifier: str | int | None) -> WorkoutSet | None:
    """Resolve "last" / "first" / a 1-based ordinal; anything else means "last"."""
    if not ordered:
        return None
    ident = str(identifier if identifier is not None else "last").strip().lower()
    if ident == "first":
        return ordered[0]
    if ident.isdigit():
        n = int(ident)
        if 1 <= n <= len(ordered):
            return ordered[n - 1]
    return ordered[-1]


class WorkoutService:
    def __init__(
        self,
        db: Session,
        matcher: ExerciseMatcher | None = None,
        *,
        reevaluate_prs_on_edit: bool | None = None,
    ):
        s = get_settings()
        self.db = db
        self.matcher = matcher or ExerciseMatcher(db)
        self.exercises = ExerciseRepository(db)
        self.sessions = WorkoutSessionRepository(db)
        self.sets = WorkoutSetRepository(db)
        self.profiles = ProfileRepository(db)
        self.reevaluate_prs_on_edit = (
            s.REEVALUATE_PRS_ON_EDIT if reevaluate_prs_on_edit is None else reevaluate_prs_on_edit
        )
        self._enforce_single_active()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _enforce_single_active(self) -> None:
        active = self.sessions.list_active()
        if len(active) <= 1:
            return
        now = utcnow()
        for sess in active[1:]:
            sess.end_time = now
        self.db.commit()
        log.warning("found %d active sessions; kept #%d, ended the rest", len(active), active[0].id)

    def get_active_session(self) -> Optional[WorkoutSession]:
        return self.sessions.get_active()

    def start_session(self, label: str) -> WorkoutSession:
        label = label.strip() or "Workout"
        now = utcnow()
        for sess in self.sessions.list_active():
            sess.end_time = now
            log.info("ended session #%d (%s) to start a new one", sess.id, sess.label)
        sess = self.sessions.create(label=label)
        self.db.commit()
        log.info("started session #%d (%s)", sess.id, sess.label)
        return sess

    def end_session(self, session: WorkoutSession) -> WorkoutSession:
        if session.end_time is None:
            session.end_time = utcnow()
            self.db.commit()
            log.info("ended session #%d (%s)", session.id, session.label)
        return session

    def end_active_session(self) -> Optional[WorkoutSession]:
        sess = self.get_active_session()
        return self.end_session(sess) if sess else None

    def end_stale_sessions(self, *, max_age_hours: float | None = None, now: datetime | None = None) -> int:
        """End active sessions that are too old or never got an exercise."""
        hours = get_settings().STALE_SESSION_HOURS if max_age_hours is None else max_age_hours
        now = now or utcnow()
        cutoff = now - timedelta(hours=hours)
        ended = 0
        for sess in self.sessions.list_active():
            if sess.start_time < cutoff or not sess.exercises:
                sess.end_time = now
                ended += 1
        if ended:
            self.db.commit()
            log.info("ended %d stale session(s)", ended)
        return ended

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log_set(
        self,
        exercise_name: str,
        weight: float | None,
        reps: int,
        rpe: int | None = None,
        muscle_group: str = "Other",
        is_bodyweight: bool = False,
    ) -> LogSetResult:
        session = self.get_active_session()
        if session is None:
            raise NoActiveSessionError("no active workout session")
        if reps <= 0:
            raise ValueError("reps must be positive")
        if weight is not None and weight < 0:
            raise ValueError("weight cannot be negative")

        actual_weight = weight or 0.0
        if is_bodyweight and not weight:
            actual_weight = self.profiles.body_weight() or 0.0

        exercise = self.matcher.find_or_create(exercise_name, muscle_group)
        workout_exercise = self._find_or_create_workout_exercise(session, exercise)

        previous_best = exercise.best_weight
        is_pr = self._check_and_update_pr(exercise, actual_weight, reps)
        new_set = self.sets.create(
            workout_exercise,
            set_number=len(workout_exercise.sets) + 1,
            weight=actual_weight,
            reps=reps,
            rpe=rpe,
            is_pr=is_pr,
        )
        self.db.commit()

        if is_pr:
            log.info("PR on %s: %s lbs (previous %s)", exercise.name, actual_weight, previous_best)
        return LogSetResult(set=new_set, is_pr=is_pr, previous_best=previous_best, exercise=exercise)

    def _find_or_create_workout_exercise(self, session: WorkoutSession, exercise: Exercise) -> WorkoutExercise:
        for we in session.exercises:
            if we.exercise_id == exercise.id:
                return we
        we = WorkoutExercise(order_index=len(session.exercises), exercise=exercise)
        session.exercises.append(we)
        self.db.flush()
        return we

    @staticmethod
    def _check_and_update_pr(exercise: Exercise, weight: float, reps: int) -> bool:
        # Only a heavier weight flags the set; a volume best just updates the cache
        is_pr = exercise.best_weight is None or weight > exercise.best_weight
        if is_pr:
            exercise.best_weight = weight
        volume = weight * reps
        if exercise.best_volume is None or volume > exercise.best_volume:
            exercise.best_volume = volume
        return is_pr

    def recompute_personal_records(self, exercise: Exercise) -> None:
        """Rebuild the PR caches and isPR flags by replaying every set in log order."""
        self.db.flush()
        best_weight: float | None = None
        best_volume: float | None = None
        for s in self.sets.list_for_exercise(exercise.id):
            s.is_pr = best_weight is None or s.weight > best_weight
            if s.is_pr:
                best_weight = s.weight
            if best_volume is None or s.volume > best_volume:
                best_volume = s.volume
        exercise.best_weight = best_weight
        exercise.best_volume = best_volume

    # ------------------------------------------------------------------
    # Personal records
    # ------------------------------------------------------------------

    def get_pr(self, exercise_name: str) -> Optional[PersonalRecord]:
        ex = self.matcher.resolve(exercise_name)
        if ex is None:
            return None
        return PersonalRecord(
            exercise_name=ex.name,
            weight=ex.best_weight or 0.0,
            volume=ex.best_volume or 0.0,
            muscle_group=ex.muscle_group,
        )

    def get_all_prs(self, limit: int = 5, muscle_group: str | None = None) -> AllPRsResult:
        with_records = self.exercises.list_with_records(muscle_group=muscle_group)
        entries = [
            PersonalRecord(
                exercise_name=ex.name,
                weight=ex.best_weight or 0.0,
                volume=ex.best_volume or 0.0,
                muscle_group=ex.muscle_group,
            )
            for ex in with_records[:max(limit, 0)]
        ]
        return AllPRsResult(entries=entries, total_count=len(with_records))

    # ------------------------------------------------------------------
    # Edits within the active session
    # ------------------------------------------------------------------

    def _active_workout_exercise(self, exercise_name: str) -> tuple[WorkoutExercise, Exercise] | None:
        session = self.get_active_session()
        if session is None:
            return None
        ex = self.matcher.resolve(exercise_name)
        if ex is None:
            return None
        for we in session.exercises:
            if we.exercise_id == ex.id:
                return we, ex
        return None

    def edit_set(
        self,
        exercise_name: str,
        set_identifier: str | int | None = "last",
        new_weight: float | None = None,
        new_reps: int | None = None,
    ) -> Optional[EditSetResult]:
        found = self._active_workout_exercise(exercise_name)
        if found is None:
            return None
        we, ex = found
        target = pick_set(list(we.sets), set_identifier)
        if target is None:
            return None

        if new_weight is not None:
            target.weight = new_weight
        if new_reps is not None:
            target.reps = new_reps
        if self.reevaluate_prs_on_edit:
            self.recompute_personal_records(ex)
        self.db.commit()
        return EditSetResult(exercise_name=ex.name, set_number=target.set_number, weight=target.weight, reps=target.reps)

    def delete_set(self, exercise_name: str, set_identifier: str | int | None = "last") -> Optional[DeleteSetResult]:
        found = self._active_workout_exercise(exercise_name)
        if found is None:
            return None
        we, ex = found
        target = pick_set(list(we.sets), set_identifier)
        if target is None:
            return None

        set_number = target.set_number
        we.sets.remove(target)
        self.sets.delete(target)
        for i, remaining in enumerate(sorted(we.sets, key=lambda s: (s.set_number, s.id)), start=1):
            remaining.set_number = i
        if self.reevaluate_prs_on_edit:
            self.recompute_personal_records(ex)
        self.db.commit()
        log.debug("deleted set %d of %s; %d left", set_number, ex.name, len(we.sets))
        return DeleteSetResult(exercise_name=ex.name, set_number=set_number)

    def delete_exercise(self, exercise_name: str) -> Optional[str]:
        """Drop an exercise instance from the active session; returns its catalog name."""
        found = self._active_workout_exercise(exercise_name)
        if found is None:
            return None
        we, ex = found
        session = we.session
        session.exercises.remove(we)
        self.db.delete(we)
        self.db.flush()
        for i, remaining in enumerate(session.exercises):
            remaining.order_index = i
        if self.reevaluate_prs_on_edit:
            self.recompute_personal_records(ex)
        self.db.commit()
        log.info("removed %s from session #%d", ex.name, session.id)
        return ex.name

    def update_exercise_from_edit(
        self,
        exercise_name: str,
        new_exercise_name: str,
        sets: Sequence[SetEntry],
    ) -> Optional[WorkoutExercise]:
        """Rewrite one exercise instance of the active session in a single pass.

        The instance may be re-pointed at another catalog exercise (found or
        created), its sets are overwritten in order, extra entries are appended
        and surplus sets are dropped from the end.
        """
        if not sets:
            raise ValueError("at least one set is required")
        for entry in sets:
            if entry.reps <= 0:
                raise ValueError("reps must be positive")
            if entry.weight < 0:
                raise ValueError("weight cannot be negative")

        found = self._active_workout_exercise(exercise_name)
        if found is None:
            return None
        we, ex = found

        touched = {ex.id: ex}
        if new_exercise_name.strip() and normalize(new_exercise_name) != normalize(ex.name):
            target = self.matcher.find_or_create(new_exercise_name, ex.muscle_group)
            if target.id != ex.id:
                if any(other.exercise_id == target.id for other in we.session.exercises):
                    raise ValueError("exercise_already_in_session")
                we.exercise = target
                touched[target.id] = target

        ordered = sorted(we.sets, key=lambda s: (s.set_number, s.id))
        for i, entry in enumerate(sets):
            if i < len(ordered):
                ordered[i].weight = entry.weight
                ordered[i].reps = entry.reps
            else:
                self.sets.create(we, set_number=i + 1, weight=entry.weight, reps=entry.reps, rpe=None, is_pr=False)
        for extra in ordered[len(sets):]:
            we.sets.remove(extra)
            self.sets.delete(extra)

        if self.reevaluate_prs_on_edit:
            for exercise in touched.values():
                self.recompute_personal_records(exercise)
        self.db.commit()
        log.info("rewrote %s in session #%d with %d set(s)", we.exercise.name, we.session_id, len(sets))
        return we

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_recent_sessions(self, limit: int = 5) -> list[WorkoutSession]:
        return self.sessions.list_recent(limit=limit).items

    def _performed(self, exercise: Exercise) -> list[WorkoutExercise]:
        done = [we for we in exercise.history if we.session is not None and we.sets]
        done.sort(key=lambda we: (we.session.start_time, we.session.id), reverse=True)
        return done

    def get_exercise_history(self, exercise_name: str, limit: int = 3) -> list[ExerciseHistoryEntry]:
        ex = self.matcher.resolve(exercise_name)
        if ex is None:
            return []
        entries = []
        for we in self._performed(ex)[:limit]:
            sets = list(we.sets)
            max_weight = max(s.weight for s in sets)
            entries.append(
                ExerciseHistoryEntry(
                    exercise_name=ex.name,
                    date=we.session.start_time,
                    label=we.session.label,
                    sets=[SetEntry(weight=s.weight, reps=s.reps) for s in sets],
                    max_weight=max_weight,
                    best_reps_at_max_weight=max(s.reps for s in sets if s.weight == max_weight),
                )
            )
        return entries

    def get_last_exercise_stats(self, exercise_name: str) -> Optional[WorkoutExercise]:
        ex = self.matcher.resolve(exercise_name)
        if ex is None:
            return None
        performed = self._performed(ex)
        return performed[0] if performed else None

    def get_history(self, muscle_group: str, limit: int = 5) -> list[WorkoutSession]:
        needle = muscle_group.lower()
        matched = [
            sess for sess in self.sessions.list_all_recent_first()
            if needle in sess.label.lower()
            or any(we.exercise and needle in we.exercise.muscle_group.lower() for we in sess.exercises)
        ]
        return matched[:limit]

    def search_sessions(self, query: str) -> list[WorkoutSession]:
        return self.sessions.search_by_label(query)

    def history_summary(self, limit: int = 3) -> str:
        sessions = self.get_recent_sessions(limit)
        if not sessions:
            return "No workout history yet. Let's get started!"
        return ", ".join(f"{s.start_time:%A}: {s.label}" for s in sessions)

    # ------------------------------------------------------------------
    # Catalog maintenance
    # ------------------------------------------------------------------

    def suggest_exercises(self, label: str, limit: int = 6, excluding: Iterable[str] = ()) -> list[Exercise]:
        groups = groups_for_label(label)
        if not groups:
            return []
        skip = {name.lower() for name in excluding}
        candidates = [ex for ex in self.exercises.list_by_muscle_groups(groups) if ex.name.lower() not in skip]

        def last_done(ex: Exercise) -> datetime:
            performed = self._performed(ex)
            return performed[0].session.start_time if performed else datetime.min

        candidates.sort(key=last_done, reverse=True)
        return candidates[:limit]

    def rename_exercise(self, exercise_id: int, new_name: str) -> Optional[Exercise]:
        name = normalize_for_storage(new_name)
        if not name:
            raise ValueError("exercise name cannot be blank")
        return self.exercises.rename(exercise_id, name=name)

    def hide_exercise(self, exercise_id: int, hidden: bool = True) -> Optional[Exercise]:
        return self.exercises.set_hidden(exercise_id, hidden=hidden)

    def remove_exercise(self, exercise_id: int) -> bool:
        """Hard delete; every logged instance of the exercise goes with it."""
        ex = self.exercises.get(exercise_id)
        if ex is None:
            return False
        self.exercises.delete(ex)
        self.db.commit()
        log.info("removed exercise %r and its history", ex.name)
        return True
