from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from liftlog.db import get_db
from liftlog.repositories.exercise_repo import ExerciseRepository
from liftlog.schemas.exercise import (
    ExerciseHide,
    ExerciseHistoryRead,
    ExerciseMatch,
    ExerciseRead,
    ExerciseRename,
    PersonalRecordRead,
    PersonalRecordsRead,
)
from liftlog.services.workout import WorkoutService

router = APIRouter(prefix="/exercises", tags=["exercises"])


@router.get("", response_model=list[ExerciseMatch])
def search_exercises(db: Session = Depends(get_db), q: str = Query("", max_length=120)):
    svc = WorkoutService(db)
    if not q.strip():
        return [
            ExerciseMatch(exercise=ex, confidence=1.0)
            for ex in svc.exercises.list_all(include_hidden=False)
        ]
    return [ExerciseMatch(exercise=ex, confidence=round(score, 3)) for ex, score in svc.matcher.search(q)]


@router.get("/prs", response_model=PersonalRecordsRead)
def personal_records(
    db: Session = Depends(get_db),
    muscle_group: str | None = Query(None, max_length=32),
    limit: int = Query(5, ge=1, le=20),
):
    result = WorkoutService(db).get_all_prs(limit=limit, muscle_group=muscle_group)
    return PersonalRecordsRead(
        entries=[PersonalRecordRead.model_validate(pr) for pr in result.entries],
        total_count=result.total_count,
    )


@router.get("/suggestions", response_model=list[ExerciseRead])
def suggestions(
    db: Session = Depends(get_db),
    label: str = Query(..., min_length=1, max_length=120),
    limit: int = Query(6, ge=1, le=20),
):
    svc = WorkoutService(db)
    active = svc.get_active_session()
    done = [we.exercise.name for we in active.exercises] if active else []
    return svc.suggest_exercises(label, limit=limit, excluding=done)


@router.get("/{exercise_id}/history", response_model=list[ExerciseHistoryRead])
def exercise_history(exercise_id: int, db: Session = Depends(get_db), limit: int = Query(3, ge=1, le=20)):
    ex = ExerciseRepository(db).get(exercise_id)
    if not ex:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")
    entries = WorkoutService(db).get_exercise_history(ex.name, limit=limit)
    return [ExerciseHistoryRead.model_validate(e) for e in entries]


@router.patch("/{exercise_id}", response_model=ExerciseRead)
def rename_exercise(exercise_id: int, payload: ExerciseRename, db: Session = Depends(get_db)):
    try:
        ex = WorkoutService(db).rename_exercise(exercise_id, payload.name)
    except ValueError as e:
        if str(e) == "exercise_name_exists":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Exercise name already exists")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not ex:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")
    return ex


@router.post("/{exercise_id}/hide", response_model=ExerciseRead)
def hide_exercise(exercise_id: int, payload: ExerciseHide | None = None, db: Session = Depends(get_db)):
    hidden = payload.hidden if payload else True
    ex = WorkoutService(db).hide_exercise(exercise_id, hidden=hidden)
    if not ex:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")
    return ex


@router.delete("/{exercise_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exercise(exercise_id: int, db: Session = Depends(get_db)):
    if not WorkoutService(db).remove_exercise(exercise_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found")
