"""Likes and pins on updates."""
import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFound, ValidationError
from app.models.update import PinnedPost, Update, UpdateLike
from app.models.user import User
from app.schemas.update import LikeResult

logger = logging.getLogger(__name__)


def _get_update_or_404(db: Session, update_id) -> Update:
    update = db.query(Update).filter(Update.id == update_id).first()
    if not update:
        raise NotFound("Update not found")
    return update


def _likes_count(db: Session, update_id) -> int:
    return db.query(func.count(UpdateLike.id)).filter(UpdateLike.update_id == update_id).scalar()


def toggle_like(db: Session, user: User, update_id) -> LikeResult:
    """Flip the user's like on an update and report the authoritative state."""
    update = _get_update_or_404(db, update_id)
    like = (
        db.query(UpdateLike)
        .filter(UpdateLike.update_id == update.id, UpdateLike.user_id == user.id)
        .first()
    )
    if like:
        db.delete(like)
        liked = False
    else:
        db.add(UpdateLike(update_id=update.id, user_id=user.id))
        liked = True

    try:
        db.commit()
    except IntegrityError:
        # A concurrent toggle already created the like
        db.rollback()
        liked = True

    return LikeResult(liked=liked, likes_count=_likes_count(db, update.id))


# ---------------------------------------------------------------------------
# Pins (profile showcase, max settings.MAX_PINNED_POSTS per user)
# ---------------------------------------------------------------------------


def list_pins(db: Session, user: User) -> List[PinnedPost]:
    return (
        db.query(PinnedPost)
        .filter(PinnedPost.user_id == user.id)
        .order_by(PinnedPost.display_order.asc())
        .all()
    )


def pin_post(db: Session, user: User, update_id) -> PinnedPost:
    update = _get_update_or_404(db, update_id)

    existing = (
        db.query(PinnedPost.id)
        .filter(PinnedPost.user_id == user.id, PinnedPost.update_id == update.id)
        .first()
    )
    if existing:
        raise ValidationError("Post already pinned")

    current = db.query(func.count(PinnedPost.id)).filter(PinnedPost.user_id == user.id).scalar()
    if current >= settings.MAX_PINNED_POSTS:
        raise ValidationError(f"You can only pin up to {settings.MAX_PINNED_POSTS} posts")

    pin = PinnedPost(user_id=user.id, update_id=update.id, display_order=current)
    db.add(pin)
    db.commit()
    db.refresh(pin)
    return pin


def unpin_post(db: Session, user: User, update_id) -> None:
    pin = (
        db.query(PinnedPost)
        .filter(PinnedPost.user_id == user.id, PinnedPost.update_id == update_id)
        .first()
    )
    if not pin:
        raise NotFound("Pinned post not found")
    db.delete(pin)
    db.flush()

    # Close the gap so orders stay 0..n-1
    for index, remaining in enumerate(list_pins(db, user)):
        if remaining.display_order != index:
            remaining.display_order = index
    db.commit()
