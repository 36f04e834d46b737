from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from liftlog.db import get_db
from liftlog.repositories.session_repo import WorkoutSessionRepository
from liftlog.schemas.session import (
    ExerciseEdit,
    HistorySummary,
    SessionPage,
    WorkoutExerciseRead,
    WorkoutSessionRead,
)
from liftlog.services.workout import SetEntry, WorkoutService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=SessionPage)
def list_sessions(
    db: Session = Depends(get_db),
    q: str | None = Query(None, max_length=120),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    if q:
        found = WorkoutService(db).search_sessions(q)
        items, total = found[offset:offset + limit], len(found)
    else:
        page = WorkoutSessionRepository(db).list_recent(limit=limit, offset=offset)
        items, total = page.items, page.total
    return SessionPage(
        items=[WorkoutSessionRead.model_validate(s) for s in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/active", response_model=WorkoutSessionRead)
def get_active(db: Session = Depends(get_db)):
    sess = WorkoutService(db).get_active_session()
    if not sess:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active session")
    return sess


@router.post("/end", response_model=WorkoutSessionRead)
def end_active(db: Session = Depends(get_db)):
    sess = WorkoutService(db).end_active_session()
    if not sess:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active session")
    return sess


@router.get("/summary", response_model=HistorySummary)
def recent_summary(db: Session = Depends(get_db), limit: int = Query(3, ge=1, le=10)):
    return HistorySummary(summary=WorkoutService(db).history_summary(limit))


@router.put("/active/exercises/{exercise_name}", response_model=WorkoutExerciseRead)
def edit_active_exercise(exercise_name: str, payload: ExerciseEdit, db: Session = Depends(get_db)):
    try:
        we = WorkoutService(db).update_exercise_from_edit(
            exercise_name,
            payload.name or exercise_name,
            [SetEntry(weight=s.weight, reps=s.reps) for s in payload.sets],
        )
    except ValueError as e:
        if str(e) == "exercise_already_in_session":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Exercise already logged in this session")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if we is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not in the active session")
    return WorkoutExerciseRead.model_validate(we)
