from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from opsdesk.crud import crud_user
from opsdesk.schemas.user import Profile as ProfileSchema, ProfileCreate, ProfileUpdate
from opsdesk.db.session import get_db
from opsdesk.core.dependencies import get_current_active_superuser, get_current_active_user
from opsdesk.models.user import Profile as ProfileModel

router = APIRouter()

@router.post("/", response_model=ProfileSchema, status_code=201)
def create_profile(
    profile_in: ProfileCreate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    """
    Create a team member (seller, SDR, admin). Requires superuser privileges.
    """
    if crud_user.get_profile_by_email(db, email=profile_in.email):
        raise HTTPException(status_code=400, detail="A profile with this email already exists.")
    return crud_user.create_profile(db=db, obj_in=profile_in)

@router.get("/", response_model=List[ProfileSchema])
def read_profiles(
    db: Session = Depends(get_db),
    role: Optional[str] = Query(None, description="Filter by role: admin, seller, sdr, member"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: ProfileModel = Depends(get_current_active_user)
):
    return crud_user.get_profiles(db, role=role, skip=skip, limit=limit)

@router.put("/{profile_id}", response_model=ProfileSchema)
def update_profile(
    profile_id: int,
    profile_in: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: ProfileModel = Depends(get_current_active_superuser) # Admin only
):
    db_profile = crud_user.get_profile(db, profile_id=profile_id)
    if not db_profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return crud_user.update_profile(db=db, db_obj=db_profile, obj_in=profile_in)
