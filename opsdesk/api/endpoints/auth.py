import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from opsdesk.core.dependencies import get_current_active_user
from opsdesk.core.security import verify_password, create_access_token
from opsdesk.crud import crud_user
from opsdesk.db.session import get_db
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.schemas.token import Token
from opsdesk.schemas.user import Profile as ProfileSchema

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    OAuth2 compatible token login, get an access token for future requests.
    """
    user = crud_user.get_profile_by_email(db, email=form_data.username)

    if not user or not user.hashed_password or not verify_password(form_data.password, user.hashed_password):
        logger.info(f"Failed login attempt for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.email} # "sub" is the standard claim for the subject
    )
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=ProfileSchema)
async def read_profile_me(current_user: ProfileModel = Depends(get_current_active_user)):
    """
    Get the current logged-in profile.
    """
    return current_user
