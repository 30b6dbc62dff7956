"""
Comment threads on updates and on local listings.

Both thread kinds share one implementation; they differ in parent model,
length limit and which poll target their polls use.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.errors import AuthorizationError, NotFound, ValidationError
from app.models.local_listing import LocalListing, LocalListingComment, ListingStatus
from app.models.update import Update, UpdateComment
from app.models.user import User
from app.schemas.comment import Comment as CommentSchema, CommentCreate, CommentUpdate
from app.schemas.common import paginate
from app.schemas.user import UserSummary
from app.services.polls import attach_poll, replace_poll, serialize_poll
from app.utils.mentions import extract_handles, render_mentions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThreadKind:
    parent_model: type
    comment_model: type
    parent_column: str
    parent_label: str
    max_length: int
    poll_kind: str


UPDATE_THREAD = ThreadKind(
    parent_model=Update,
    comment_model=UpdateComment,
    parent_column="update_id",
    parent_label="Update",
    max_length=1000,
    poll_kind="update-comment",
)
LISTING_THREAD = ThreadKind(
    parent_model=LocalListing,
    comment_model=LocalListingComment,
    parent_column="listing_id",
    parent_label="Listing",
    max_length=2000,
    poll_kind="listing-comment",
)


def _clean_content(kind: ThreadKind, content: Optional[str], has_extras: bool) -> str:
    content = (content or "").strip()
    if not content and not has_extras:
        raise ValidationError("Comment content is required")
    if len(content) > kind.max_length:
        raise ValidationError(f"Comment is too long (max {kind.max_length} characters)")
    return content


def _get_parent(db: Session, kind: ThreadKind, parent_id):
    parent = db.query(kind.parent_model).filter(kind.parent_model.id == parent_id).first()
    if not parent:
        raise NotFound(f"{kind.parent_label} not found")
    return parent


def _get_comment(db: Session, kind: ThreadKind, comment_id):
    model = kind.comment_model
    comment = db.query(model).options(joinedload(model.user)).filter(model.id == comment_id).first()
    if not comment:
        raise NotFound("Comment not found")
    return comment


def serialize_comment(db: Session, kind: ThreadKind, comment, viewer: Optional[User] = None) -> CommentSchema:
    return CommentSchema(
        id=comment.id,
        parent_id=getattr(comment, kind.parent_column),
        user=UserSummary.model_validate(comment.user),
        content=comment.content,
        content_html=render_mentions(comment.content, settings.WEB_BASE_URL),
        mentions=extract_handles(comment.content),
        image_url=comment.image_url,
        gif_url=comment.gif_url,
        video_url=comment.video_url,
        poll=serialize_poll(db, kind.poll_kind, comment, viewer),
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def list_comments(
    db: Session,
    kind: ThreadKind,
    parent_id,
    viewer: Optional[User] = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """Oldest-first page of a thread, as PaginatedResponse kwargs (unserialized)."""
    parent = _get_parent(db, kind, parent_id)
    if kind is LISTING_THREAD:
        is_owner = viewer is not None and viewer.id == parent.user_id
        if not is_owner and parent.status != ListingStatus.ACTIVE:
            raise NotFound("Listing not found")

    model = kind.comment_model
    query = (
        db.query(model)
        .options(joinedload(model.user))
        .filter(getattr(model, kind.parent_column) == parent.id)
        .order_by(model.created_at.asc())
    )
    return paginate(query, page, limit)


def create_comment(
    db: Session,
    kind: ThreadKind,
    parent_id,
    user: User,
    data: CommentCreate,
    now: Optional[datetime] = None,
):
    has_extras = bool(data.image_url or data.gif_url or data.video_url or data.poll)
    content = _clean_content(kind, data.content, has_extras)

    parent = _get_parent(db, kind, parent_id)
    if kind is LISTING_THREAD and parent.status != ListingStatus.ACTIVE:
        raise AuthorizationError("Cannot comment on this listing")

    comment = kind.comment_model(
        user_id=user.id,
        content=content,
        image_url=data.image_url,
        gif_url=data.gif_url,
        video_url=data.video_url,
        **{kind.parent_column: parent.id},
    )
    if data.poll:
        attach_poll(comment, data.poll, now)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def _require_author(comment, user: User, action: str) -> None:
    if comment.user_id != user.id and user.role != "admin":
        raise AuthorizationError(f"You can only {action} your own comments")


def edit_comment(
    db: Session,
    kind: ThreadKind,
    comment_id,
    user: User,
    data: CommentUpdate,
    now: Optional[datetime] = None,
):
    comment = _get_comment(db, kind, comment_id)
    _require_author(comment, user, "edit")

    fields = data.model_dump(exclude_unset=True)
    poll = fields.pop("poll", None)
    for field in ("image_url", "gif_url", "video_url"):
        if field in fields:
            setattr(comment, field, fields[field])

    if "content" in fields:
        has_extras = bool(
            comment.image_url or comment.gif_url or comment.video_url
            or comment.poll_question or poll
        )
        comment.content = _clean_content(kind, fields["content"], has_extras)

    if poll is not None:
        replace_poll(db, kind.poll_kind, comment, data.poll, now)

    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, kind: ThreadKind, comment_id, user: User) -> None:
    comment = _get_comment(db, kind, comment_id)
    _require_author(comment, user, "delete")
    db.delete(comment)
    db.commit()
    logger.info("Comment %s deleted by %s", comment_id, user.id)
