"""Feed posts ("updates"): create, read, delete, plus viewer-aware serialization."""
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.errors import AuthorizationError, NotFound, ValidationError
from app.models.update import PinnedPost, Update, UpdateLike
from app.models.user import User
from app.schemas.update import Update as UpdateSchema, UpdateCreate
from app.schemas.user import UserSummary
from app.services.polls import attach_poll, serialize_poll
from app.utils.mentions import extract_handles, render_mentions
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

MAX_FEED_PAGE = 50


def serialize_update(db: Session, update: Update, viewer: Optional[User] = None) -> UpdateSchema:
    liked = False
    is_pinned = False
    if viewer is not None:
        liked = (
            db.query(UpdateLike.id)
            .filter(UpdateLike.update_id == update.id, UpdateLike.user_id == viewer.id)
            .first()
            is not None
        )
        is_pinned = (
            db.query(PinnedPost.id)
            .filter(PinnedPost.update_id == update.id, PinnedPost.user_id == viewer.id)
            .first()
            is not None
        )

    return UpdateSchema(
        id=update.id,
        user=UserSummary.model_validate(update.user),
        content=update.content,
        content_html=render_mentions(update.content, settings.WEB_BASE_URL),
        mentions=extract_handles(update.content),
        image_url=update.image_url,
        poll=serialize_poll(db, "update", update, viewer),
        likes_count=update.likes_count or 0,
        comments_count=update.comments_count or 0,
        liked=liked,
        is_pinned=is_pinned,
        created_at=update.created_at,
    )


def get_update_or_404(db: Session, update_id) -> Update:
    update = (
        db.query(Update)
        .options(joinedload(Update.user))
        .filter(Update.id == update_id)
        .first()
    )
    if not update:
        raise NotFound("Update not found")
    return update


def create_update(db: Session, user: User, data: UpdateCreate, now: Optional[datetime] = None) -> Update:
    content = data.content.strip()
    if not content:
        raise ValidationError("Content is required")

    update = Update(user_id=user.id, content=content, image_url=data.image_url)
    if data.poll:
        attach_poll(update, data.poll, now)
    db.add(update)
    db.commit()
    db.refresh(update)
    logger.info("User %s posted update %s", user.id, update.id)
    return update


def list_updates(
    db: Session,
    user_id=None,
    cursor=None,
    limit: int = 20,
) -> tuple:
    """
    Newest-first page of updates. ``cursor`` is the id of the last update of
    the previous page. Returns ``(updates, next_cursor)``.
    """
    limit = min(limit, MAX_FEED_PAGE)
    query = db.query(Update).options(joinedload(Update.user))
    if user_id:
        query = query.filter(Update.user_id == user_id)

    if cursor:
        try:
            cursor = uuid.UUID(str(cursor))
        except ValueError:
            raise ValidationError("Invalid cursor")
        anchor = db.query(Update).filter(Update.id == cursor).first()
        if not anchor:
            raise ValidationError("Invalid cursor")
        query = query.filter(
            or_(
                Update.created_at < anchor.created_at,
                and_(Update.created_at == anchor.created_at, Update.id < anchor.id),
            )
        )

    updates = query.order_by(Update.created_at.desc(), Update.id.desc()).limit(limit).all()
    next_cursor = str(updates[-1].id) if len(updates) == limit else None
    return updates, next_cursor


def delete_update(db: Session, user: User, update_id) -> None:
    update = get_update_or_404(db, update_id)
    if update.user_id != user.id and user.role != "admin":
        raise AuthorizationError("You don't have permission to delete this update")
    db.delete(update)
    db.commit()
