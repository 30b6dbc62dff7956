"""
Local listing lifecycle: create, update, delete, checkout, activation,
expiry and draft cleanup.

Status flow::

    DRAFT ──checkout──> PENDING_PAYMENT ──payment──> ACTIVE ──> EXPIRED
      │                                               │
      └────────(free categories start ACTIVE)          └──flags──> FLAGGED
    any ──moderator/owner──> REMOVED (terminal)
"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import AuthorizationError, InvalidTransition, NotFound, ValidationError
from app.models.local_listing import (
    LocalListing,
    LocalListingImage,
    ListingCategory,
    ListingStatus,
)
from app.models.user import User
from app.schemas.local_listing import LocalListingCreate, LocalListingUpdate
from app.services.checkout import CheckoutGateway, CheckoutSession
from app.utils.slug import generate_location_slug, make_unique_slug
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

PAID_CATEGORIES = frozenset({ListingCategory.SERVICES})

# Days a listing stays ACTIVE after activation. Every category must appear here.
LISTING_DURATION_DAYS = {
    ListingCategory.SERVICES: 90,
    ListingCategory.COMMUNITY: 30,
    ListingCategory.DISCUSSION: 30,
    ListingCategory.COWORKING_HOUSING: 30,
    ListingCategory.FOR_SALE: 30,
}

ACTIVATABLE_FROM = frozenset({
    ListingStatus.DRAFT,
    ListingStatus.PENDING_PAYMENT,
    ListingStatus.EXPIRED,
})
CHECKOUT_FROM = frozenset({ListingStatus.DRAFT, ListingStatus.PENDING_PAYMENT})
REQUIRED_TEXT_FIELDS = ("title", "description", "city", "state")

_UNSET = object()


def is_paid_category(category) -> bool:
    return ListingCategory(category) in PAID_CATEGORIES


def duration(category) -> timedelta:
    return timedelta(days=LISTING_DURATION_DAYS[ListingCategory(category)])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_listing_or_404(db: Session, listing_id) -> LocalListing:
    listing = db.query(LocalListing).filter(LocalListing.id == listing_id).first()
    if not listing:
        raise NotFound("Listing not found")
    return listing


def _require_owner(listing: LocalListing, user: User, action: str) -> None:
    if listing.user_id != user.id:
        raise AuthorizationError(f"You don't have permission to {action} this listing")


def _build_images(images) -> list:
    return [
        LocalListingImage(url=img.url, caption=img.caption, display_order=index)
        for index, img in enumerate(images)
    ]


# ---------------------------------------------------------------------------
# Create / update / delete
# ---------------------------------------------------------------------------


def create_listing(
    db: Session,
    user: User,
    data: LocalListingCreate,
    now: Optional[datetime] = None,
) -> LocalListing:
    """
    Persist a new listing.

    Paid categories start as DRAFT and keep their price; everything else is
    ACTIVE straight away with its expiry window running. Location falls back
    to the owner's profile location.
    """
    if not data.title.strip() or not data.description.strip():
        raise ValidationError("Title, description, and category are required")

    city = data.city or user.city
    state = data.state or user.state
    if not city or not state:
        raise ValidationError(
            "Location is required. Please set your location in settings or provide one for this listing."
        )

    if data.location_slug:
        location_slug = data.location_slug
    elif data.city and data.state:
        location_slug = generate_location_slug(data.city, data.state)
    else:
        location_slug = user.location_slug or generate_location_slug(city, state)

    paid = is_paid_category(data.category)
    now = now or utcnow()

    listing = LocalListing(
        slug=make_unique_slug(db, LocalListing.slug, data.title),
        user_id=user.id,
        category=data.category,
        status=ListingStatus.DRAFT if paid else ListingStatus.ACTIVE,
        title=data.title.strip(),
        description=data.description.strip(),
        price_in_cents=data.price_in_cents if paid else None,
        contact_email=data.contact_email or user.email,
        contact_phone=data.contact_phone,
        contact_url=data.contact_url,
        city=city,
        state=state,
        zip_code=data.zip_code or user.zip_code,
        location_slug=location_slug,
        activated_at=None if paid else now,
        expires_at=None if paid else now + duration(data.category),
        images=_build_images(data.images),
    )
    db.add(listing)
    db.commit()
    db.refresh(listing)

    logger.info(
        "Created %s listing %s (%s) for user %s",
        listing.category.value, listing.id, listing.status.value, user.id,
    )
    return listing


def update_listing(
    db: Session,
    user: User,
    listing_id,
    data: LocalListingUpdate,
) -> LocalListing:
    listing = get_listing_or_404(db, listing_id)
    _require_owner(listing, user, "update")
    if listing.status == ListingStatus.REMOVED:
        raise InvalidTransition("Removed listings can't be edited")

    fields = data.model_dump(exclude_unset=True)
    images = fields.pop("images", _UNSET)
    price = fields.pop("price_in_cents", _UNSET)

    for field in REQUIRED_TEXT_FIELDS:
        if fields.get(field) is None:
            continue
        fields[field] = fields[field].strip()
        if not fields[field]:
            raise ValidationError(f"{field.capitalize()} cannot be blank")

    city = fields.get("city") or listing.city
    state = fields.get("state") or listing.state
    if (city, state) != (listing.city, listing.state):
        listing.location_slug = generate_location_slug(city, state)

    for field, value in fields.items():
        # Required columns can't be blanked by an explicit null
        if value is None and field in REQUIRED_TEXT_FIELDS:
            continue
        setattr(listing, field, value)

    if price is not _UNSET and is_paid_category(listing.category):
        listing.price_in_cents = price

    if images is not _UNSET:
        listing.images = _build_images(images or [])

    db.commit()
    db.refresh(listing)
    return listing


def delete_listing(db: Session, user: User, listing_id) -> None:
    listing = get_listing_or_404(db, listing_id)
    _require_owner(listing, user, "delete")
    db.delete(listing)
    db.commit()
    logger.info("Deleted listing %s by owner %s", listing_id, user.id)


# ---------------------------------------------------------------------------
# Payment: checkout + activation
# ---------------------------------------------------------------------------


def start_checkout(
    db: Session,
    user: User,
    listing_id,
    gateway: CheckoutGateway,
) -> CheckoutSession:
    """
    Open a checkout session for a paid listing and park it in PENDING_PAYMENT.

    If the gateway fails the listing is left untouched (still DRAFT) and the
    owner can retry; abandoned drafts are purged by the expiry sweep.
    """
    listing = get_listing_or_404(db, listing_id)
    _require_owner(listing, user, "pay for")
    if not is_paid_category(listing.category):
        raise ValidationError("This listing is free and does not need checkout")
    if listing.status not in CHECKOUT_FROM:
        raise InvalidTransition(f"Listing is {listing.status.value} and can't be paid for")

    session = gateway.create_session(listing)

    listing.stripe_session_id = session.id
    listing.status = ListingStatus.PENDING_PAYMENT
    db.commit()
    logger.info("Checkout session %s opened for listing %s", session.id, listing.id)
    return session


def activate_listing(
    db: Session,
    listing_id,
    now: Optional[datetime] = None,
    session_id: Optional[str] = None,
) -> Tuple[LocalListing, bool]:
    """
    Move a listing to ACTIVE and start its expiry window.

    Returns ``(listing, changed)``. Activating an ACTIVE listing is a no-op
    that leaves ``expires_at`` alone, so duplicate payment webhooks are safe.
    """
    listing = get_listing_or_404(db, listing_id)

    if listing.status == ListingStatus.ACTIVE:
        logger.info("Listing %s already active, activation skipped", listing.id)
        return listing, False

    if listing.status not in ACTIVATABLE_FROM:
        raise InvalidTransition(f"Cannot activate a {listing.status.value} listing")

    if session_id and listing.stripe_session_id and session_id != listing.stripe_session_id:
        raise ValidationError("Checkout session does not match this listing")

    now = now or utcnow()
    previous = listing.status
    listing.status = ListingStatus.ACTIVE
    listing.activated_at = now
    listing.expires_at = now + duration(listing.category)
    if session_id and not listing.stripe_session_id:
        listing.stripe_session_id = session_id

    db.commit()
    db.refresh(listing)
    logger.info(
        "Activated listing %s (%s -> ACTIVE), expires %s",
        listing.id, previous.value, listing.expires_at,
    )
    return listing, True


# ---------------------------------------------------------------------------
# Expiry sweep
# ---------------------------------------------------------------------------


def expire_listings(db: Session, now: Optional[datetime] = None) -> int:
    """Mark ACTIVE listings whose expires_at has passed as EXPIRED. Returns the count."""
    now = now or utcnow()
    count = (
        db.query(LocalListing)
        .filter(
            LocalListing.status == ListingStatus.ACTIVE,
            LocalListing.expires_at != None,  # noqa: E711
            LocalListing.expires_at < now,
        )
        .update({"status": ListingStatus.EXPIRED}, synchronize_session="fetch")
    )
    db.commit()
    if count:
        logger.info("Expired %d local listing(s)", count)
    return count


def purge_abandoned_drafts(
    db: Session,
    now: Optional[datetime] = None,
    older_than_days: int = 30,
) -> int:
    """
    Delete paid-category drafts that never reached checkout within the
    retention window. Returns the number deleted.
    """
    now = now or utcnow()
    cutoff = now - timedelta(days=older_than_days)
    stale = (
        db.query(LocalListing)
        .filter(
            LocalListing.category.in_(list(PAID_CATEGORIES)),
            LocalListing.status == ListingStatus.DRAFT,
            LocalListing.stripe_session_id == None,  # noqa: E711
            LocalListing.created_at < cutoff,
        )
        .all()
    )
    for listing in stale:
        db.delete(listing)
    db.commit()
    if stale:
        logger.info("Purged %d abandoned draft listing(s)", len(stale))
    return len(stale)


def expiry_stats(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    next_week = now + timedelta(days=7)

    active = db.query(LocalListing).filter(LocalListing.status == ListingStatus.ACTIVE)
    pending = active.filter(LocalListing.expires_at < now).count()
    this_week = active.filter(
        LocalListing.expires_at >= now,
        LocalListing.expires_at < next_week,
    ).count()

    by_status = dict(
        db.query(LocalListing.status, func.count(LocalListing.id))
        .group_by(LocalListing.status)
        .all()
    )
    by_category = dict(
        db.query(LocalListing.category, func.count(LocalListing.id))
        .filter(LocalListing.status == ListingStatus.ACTIVE)
        .group_by(LocalListing.category)
        .all()
    )
    return {
        "pending_expiration": pending,
        "expiring_this_week": this_week,
        "by_status": {status.value: n for status, n in by_status.items()},
        "active_by_category": {category.value: n for category, n in by_category.items()},
    }
