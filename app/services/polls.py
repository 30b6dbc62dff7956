"""
Polls attached to updates, update comments and listing comments.

One vote per user per poll, permanent. A repeated vote is answered with the
current tallies and the user's original choice instead of an error.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ValidationError
from app.models.local_listing import LocalListingComment
from app.models.poll import PollOption, PollVote
from app.models.update import Update, UpdateComment
from app.models.user import User
from app.schemas.poll import Poll, PollCreate, PollOption as PollOptionSchema, VoteResult, VoteStatus
from app.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

# kind -> (owning model, PollOption/PollVote column, label used in errors)
POLL_TARGETS = {
    "update": (Update, "update_id", "Update"),
    "update-comment": (UpdateComment, "update_comment_id", "Comment"),
    "listing-comment": (LocalListingComment, "listing_comment_id", "Comment"),
}


def attach_poll(target, poll: PollCreate, now: Optional[datetime] = None) -> None:
    """Set poll question, expiry and options on a not-yet-voted target."""
    now = now or utcnow()
    target.poll_question = poll.question.strip()
    target.poll_expires_at = now + timedelta(days=poll.duration_days)
    target.poll_options = [
        PollOption(text=text, display_order=index) for index, text in enumerate(poll.options)
    ]


def has_votes(db: Session, kind: str, target_id) -> bool:
    _, column, _ = POLL_TARGETS[kind]
    return (
        db.query(PollVote.id).filter(getattr(PollVote, column) == target_id).first()
        is not None
    )


def replace_poll(db: Session, kind: str, target, poll: PollCreate, now: Optional[datetime] = None) -> None:
    """Swap a poll definition. Refused once anyone has voted."""
    if has_votes(db, kind, target.id):
        raise Conflict("A poll can't be changed once votes have been cast")
    attach_poll(target, poll, now)


def is_expired(target, now: Optional[datetime] = None) -> bool:
    expires_at = as_utc(target.poll_expires_at)
    return expires_at is not None and (now or utcnow()) > expires_at


def _option_tallies(db: Session, kind: str, target_id) -> list:
    _, column, _ = POLL_TARGETS[kind]
    counts = dict(
        db.query(PollVote.option_id, func.count(PollVote.id))
        .filter(getattr(PollVote, column) == target_id)
        .group_by(PollVote.option_id)
        .all()
    )
    options = (
        db.query(PollOption)
        .filter(getattr(PollOption, column) == target_id)
        .order_by(PollOption.display_order)
        .all()
    )
    return [
        PollOptionSchema(
            id=opt.id,
            text=opt.text,
            display_order=opt.display_order,
            votes=counts.get(opt.id, 0),
        )
        for opt in options
    ]


def _user_vote(db: Session, kind: str, target_id, user: Optional[User]) -> Optional[PollVote]:
    if user is None:
        return None
    _, column, _ = POLL_TARGETS[kind]
    return (
        db.query(PollVote)
        .filter(getattr(PollVote, column) == target_id, PollVote.user_id == user.id)
        .first()
    )


def serialize_poll(db: Session, kind: str, target, viewer: Optional[User] = None) -> Optional[Poll]:
    if not target.poll_question:
        return None
    options = _option_tallies(db, kind, target.id)
    if not options:
        return None
    vote = _user_vote(db, kind, target.id, viewer)
    return Poll(
        question=target.poll_question,
        expires_at=target.poll_expires_at,
        options=options,
        total_votes=sum(opt.votes for opt in options),
        voted_option_id=vote.option_id if vote else None,
    )


def vote_status(db: Session, kind: str, target_id, user: Optional[User]) -> VoteStatus:
    vote = _user_vote(db, kind, target_id, user)
    return VoteStatus(has_voted=vote is not None, voted_option_id=vote.option_id if vote else None)


def cast_vote(
    db: Session,
    user: User,
    kind: str,
    target_id,
    option_id,
    now: Optional[datetime] = None,
) -> VoteResult:
    model, column, label = POLL_TARGETS[kind]

    target = db.query(model).filter(model.id == target_id).first()
    if not target:
        raise NotFound(f"{label} not found")
    if not target.poll_question or not target.poll_options:
        raise ValidationError(f"This {label.lower()} does not have a poll")
    if is_expired(target, now):
        raise ValidationError("This poll has ended")
    if not any(opt.id == option_id for opt in target.poll_options):
        raise ValidationError("Invalid option for this poll")

    existing = _user_vote(db, kind, target.id, user)
    if existing is None:
        db.add(PollVote(user_id=user.id, option_id=option_id, **{column: target.id}))
        try:
            db.commit()
        except IntegrityError:
            # Lost a race against the same user's other request
            db.rollback()
            existing = _user_vote(db, kind, target.id, user)
        else:
            logger.info("User %s voted on %s %s", user.id, kind, target.id)

    voted_option_id = existing.option_id if existing else option_id
    options = _option_tallies(db, kind, target.id)
    return VoteResult(
        options=options,
        total_votes=sum(opt.votes for opt in options),
        voted_option_id=voted_option_id,
    )
