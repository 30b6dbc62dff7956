from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.comment import Comment, CommentCreate, CommentUpdate
from app.schemas.common import ERROR_RESPONSES, CursorPage, MessageResponse, PaginatedResponse
from app.schemas.poll import CommentPollVoteRequest, VoteRequest, VoteResult, VoteStatus
from app.schemas.update import LikeResult, PinnedPost, PinRequest, Update, UpdateCreate
from app.services import comments as comment_service
from app.services import engagement, polls
from app.services import updates as update_service

router = APIRouter(prefix="/updates", tags=["Updates"], responses=ERROR_RESPONSES)
update_comment_router = APIRouter(prefix="/update-comments", tags=["Updates"], responses=ERROR_RESPONSES)
comment_poll_router = APIRouter(prefix="/comment-polls", tags=["Polls"], responses=ERROR_RESPONSES)
pinned_router = APIRouter(prefix="/pinned-posts", tags=["Pinned Posts"], responses=ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


@router.get("/", response_model=CursorPage[Update])
def list_updates(
    user_id: Optional[UUID] = None,
    cursor: Optional[UUID] = None,
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    """Global feed (or one user's updates), newest first."""
    items, next_cursor = update_service.list_updates(db, user_id, cursor, limit)
    return CursorPage(
        data=[update_service.serialize_update(db, u, viewer) for u in items],
        next_cursor=next_cursor,
    )


@router.post("/", response_model=Update, status_code=status.HTTP_201_CREATED)
def create_update(
    data: UpdateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    update = update_service.create_update(db, current_user, data)
    return update_service.serialize_update(db, update, current_user)


@router.get("/{id}", response_model=Update)
def get_update(
    id: UUID,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    update = update_service.get_update_or_404(db, id)
    return update_service.serialize_update(db, update, viewer)


@router.delete("/{id}", response_model=MessageResponse)
def delete_update(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    update_service.delete_update(db, current_user, id)
    return MessageResponse(message="Update deleted")


@router.post("/{id}/like", response_model=LikeResult)
def toggle_like(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Single toggle endpoint; the response is the authoritative like state."""
    return engagement.toggle_like(db, current_user, id)


@router.post("/{id}/vote", response_model=VoteResult)
def vote_on_update(
    id: UUID,
    data: VoteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return polls.cast_vote(db, current_user, "update", id, data.option_id)


@router.get("/{id}/vote", response_model=VoteStatus)
def get_update_vote(
    id: UUID,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return polls.vote_status(db, "update", id, viewer)


# ---------------------------------------------------------------------------
# Update comments
# ---------------------------------------------------------------------------


@router.get("/{id}/comments", response_model=PaginatedResponse[Comment])
def list_update_comments(
    id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    kind = comment_service.UPDATE_THREAD
    result = comment_service.list_comments(db, kind, id, viewer, page, limit)
    result["data"] = [comment_service.serialize_comment(db, kind, c, viewer) for c in result["data"]]
    return PaginatedResponse(**result)


@router.post("/{id}/comments", response_model=Comment, status_code=status.HTTP_201_CREATED)
def create_update_comment(
    id: UUID,
    data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    kind = comment_service.UPDATE_THREAD
    comment = comment_service.create_comment(db, kind, id, current_user, data)
    return comment_service.serialize_comment(db, kind, comment, current_user)


@update_comment_router.patch("/{comment_id}", response_model=Comment)
def edit_update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    kind = comment_service.UPDATE_THREAD
    comment = comment_service.edit_comment(db, kind, comment_id, current_user, data)
    return comment_service.serialize_comment(db, kind, comment, current_user)


@update_comment_router.delete("/{comment_id}", response_model=MessageResponse)
def delete_update_comment(
    comment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment_service.delete_comment(db, comment_service.UPDATE_THREAD, comment_id, current_user)
    return MessageResponse(message="Comment deleted")


# ---------------------------------------------------------------------------
# Comment polls
# ---------------------------------------------------------------------------


@comment_poll_router.post("/{comment_id}/vote", response_model=VoteResult)
def vote_on_comment_poll(
    comment_id: UUID,
    data: CommentPollVoteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return polls.cast_vote(db, current_user, data.type, comment_id, data.option_id)


# ---------------------------------------------------------------------------
# Pinned posts
# ---------------------------------------------------------------------------


def _serialize_pin(db: Session, pin, viewer: User) -> PinnedPost:
    return PinnedPost(
        id=pin.id,
        update_id=pin.update_id,
        display_order=pin.display_order,
        update=update_service.serialize_update(db, pin.update, viewer),
    )


@pinned_router.get("/", response_model=List[PinnedPost])
def list_pinned_posts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [_serialize_pin(db, pin, current_user) for pin in engagement.list_pins(db, current_user)]


@pinned_router.post("/", response_model=PinnedPost, status_code=status.HTTP_201_CREATED)
def pin_post(
    data: PinRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    pin = engagement.pin_post(db, current_user, data.update_id)
    return _serialize_pin(db, pin, current_user)


@pinned_router.delete("/", response_model=MessageResponse)
def unpin_post(
    update_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    engagement.unpin_post(db, current_user, update_id)
    return MessageResponse(message="Post unpinned")
