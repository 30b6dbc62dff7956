"""
Abuse reports against listings and the moderator actions that resolve them.

A listing that collects ``FLAG_THRESHOLD`` reports while ACTIVE is pulled
from the public feed (FLAGGED) until a moderator restores or removes it.
"""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AuthorizationError, Conflict, InvalidTransition, NotFound, ValidationError
from app.models.local_listing import FlagReason, LocalListing, LocalListingFlag, ListingStatus
from app.models.user import User
from app.services.listings import get_listing_or_404

logger = logging.getLogger(__name__)

MAX_FLAG_DESCRIPTION = 500


def file_flag(
    db: Session,
    listing_id,
    reporter: User,
    reason,
    description: Optional[str] = None,
) -> LocalListingFlag:
    """Record a report. Validation happens before anything touches the store."""
    try:
        reason = FlagReason(reason)
    except ValueError:
        raise ValidationError("Valid reason is required")

    description = (description or "").strip() or None
    if description and len(description) > MAX_FLAG_DESCRIPTION:
        raise ValidationError(f"Description is too long (max {MAX_FLAG_DESCRIPTION} characters)")

    listing = get_listing_or_404(db, listing_id)
    if listing.user_id == reporter.id:
        raise AuthorizationError("You cannot flag your own listing")

    existing = (
        db.query(LocalListingFlag.id)
        .filter(LocalListingFlag.listing_id == listing.id, LocalListingFlag.user_id == reporter.id)
        .first()
    )
    if existing:
        raise Conflict("You have already reported this listing")

    flag = LocalListingFlag(
        listing_id=listing.id,
        user_id=reporter.id,
        reason=reason,
        description=description,
    )
    db.add(flag)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise Conflict("You have already reported this listing")

    flag_count = (
        db.query(func.count(LocalListingFlag.id))
        .filter(LocalListingFlag.listing_id == listing.id)
        .scalar()
    )
    if flag_count >= settings.FLAG_THRESHOLD and listing.status == ListingStatus.ACTIVE:
        listing.status = ListingStatus.FLAGGED
        logger.warning("Listing %s auto-flagged after %d reports", listing.id, flag_count)

    db.commit()
    db.refresh(flag)
    logger.info("Flag %s (%s) filed on listing %s", flag.id, reason.value, listing.id)
    return flag


def withdraw_flag(db: Session, listing_id, reporter: User) -> None:
    """Remove the reporter's own flag. Listing status is left as is."""
    flag = (
        db.query(LocalListingFlag)
        .filter(LocalListingFlag.listing_id == listing_id, LocalListingFlag.user_id == reporter.id)
        .first()
    )
    if not flag:
        raise NotFound("Flag not found")
    db.delete(flag)
    db.commit()


# ---------------------------------------------------------------------------
# Moderator actions
# ---------------------------------------------------------------------------


def list_flags(db: Session, listing_id) -> List[LocalListingFlag]:
    get_listing_or_404(db, listing_id)
    return (
        db.query(LocalListingFlag)
        .filter(LocalListingFlag.listing_id == listing_id)
        .order_by(LocalListingFlag.created_at.asc())
        .all()
    )


def remove_listing(db: Session, listing_id) -> LocalListing:
    """Take a listing down for good. Removing twice is harmless."""
    listing = get_listing_or_404(db, listing_id)
    if listing.status != ListingStatus.REMOVED:
        previous = listing.status
        listing.status = ListingStatus.REMOVED
        db.commit()
        db.refresh(listing)
        logger.info("Listing %s removed (was %s)", listing.id, previous.value)
    return listing


def restore_listing(db: Session, listing_id) -> LocalListing:
    """Clear the reports on a FLAGGED listing and put it back in the feed."""
    listing = get_listing_or_404(db, listing_id)
    if listing.status != ListingStatus.FLAGGED:
        raise InvalidTransition(f"Only flagged listings can be restored (listing is {listing.status.value})")

    db.query(LocalListingFlag).filter(LocalListingFlag.listing_id == listing.id).delete(
        synchronize_session="fetch"
    )
    listing.status = ListingStatus.ACTIVE
    db.commit()
    db.refresh(listing)
    logger.info("Listing %s restored after moderation", listing.id)
    return listing
