from sqlalchemy.orm import Session
from typing import Optional, List

from opsdesk.models.user import Profile
from opsdesk.schemas.user import ProfileCreate, ProfileUpdate
from opsdesk.core.security import get_password_hash

def get_profile(db: Session, profile_id: int) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == profile_id).first()

def get_profile_by_email(db: Session, email: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.email == email).first()

def get_profiles(db: Session, *, role: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Profile]:
    query = db.query(Profile)
    if role:
        query = query.filter(Profile.role == role)
    return query.order_by(Profile.full_name).offset(skip).limit(limit).all()

def create_profile(db: Session, *, obj_in: ProfileCreate) -> Profile:
    db_obj = Profile(
        email=obj_in.email,
        full_name=obj_in.full_name,
        hashed_password=get_password_hash(obj_in.password),
        role=obj_in.role,
        is_active=True, # Default to active on creation
        is_superuser=obj_in.is_superuser,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def update_profile(db: Session, *, db_obj: Profile, obj_in: ProfileUpdate) -> Profile:
    update_data = obj_in.model_dump(exclude_unset=True)

    password = update_data.pop("password", None)
    if password is not None:
        update_data["hashed_password"] = get_password_hash(password)

    for field, value in update_data.items():
        setattr(db_obj, field, value)

    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
