
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.user import User as UserSchema, UserUpdate
from app.utils.slug import generate_location_slug

router = APIRouter(prefix="/me", tags=["Me"])

@router.get("/", response_model=UserSchema)
def get_me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return current_user

@router.patch("/", response_model=UserSchema)
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update profile fields. Changing city/state also moves the default location slug."""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    if current_user.city and current_user.state:
        current_user.location_slug = generate_location_slug(current_user.city, current_user.state)
    db.commit()
    db.refresh(current_user)
    return current_user
