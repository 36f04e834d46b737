from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from liftlog.db import get_db
from liftlog.repositories.profile_repo import ProfileRepository
from liftlog.schemas.profile import ProfileRead, ProfileUpdate

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileRead)
def get_profile(db: Session = Depends(get_db)):
    profile = ProfileRepository(db).get_profile()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not set up")
    return profile


@router.put("", response_model=ProfileRead)
def put_profile(payload: ProfileUpdate, db: Session = Depends(get_db)):
    return ProfileRepository(db).upsert(
        name=payload.name,
        weight_lbs=payload.weight_lbs,
        height_inches=payload.height_inches,
    )
