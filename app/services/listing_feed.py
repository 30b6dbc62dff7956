"""Read side for local listings: public feed, owner dashboard, detail lookup."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.errors import Gone, NotFound
from app.models.local_listing import LocalListing, ListingCategory, ListingStatus
from app.models.user import User
from app.schemas.common import paginate
from app.schemas.local_listing import LocalListing as LocalListingSchema, LocalListingDetail
from app.services.ratings import owner_rating_summary
from app.utils.timeutils import as_utc, utcnow


def _base_query(db: Session):
    return db.query(LocalListing).options(
        joinedload(LocalListing.user),
        selectinload(LocalListing.images),
    )


def list_listings(
    db: Session,
    viewer: Optional[User] = None,
    category: Optional[ListingCategory] = None,
    location_slug: Optional[str] = None,
    search: Optional[str] = None,
    mine: bool = False,
    status: Optional[ListingStatus] = None,
    page: int = 1,
    limit: int = 20,
    now: Optional[datetime] = None,
) -> dict:
    """
    Listings newest first, as PaginatedResponse kwargs.

    Public view: ACTIVE and not past expiry. Owner view (``mine``): every one
    of the viewer's listings in any status, optionally narrowed by ``status``.
    """
    if mine and viewer is None:
        return dict(data=[], total=0, page=1, limit=limit, total_pages=0)

    now = now or utcnow()
    query = _base_query(db)

    if mine:
        query = query.filter(LocalListing.user_id == viewer.id)
        if status:
            query = query.filter(LocalListing.status == status)
    else:
        query = query.filter(
            LocalListing.status == ListingStatus.ACTIVE,
            or_(LocalListing.expires_at == None, LocalListing.expires_at > now),  # noqa: E711
        )

    if category:
        query = query.filter(LocalListing.category == category)
    if location_slug:
        query = query.filter(LocalListing.location_slug == location_slug)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(LocalListing.title.ilike(pattern), LocalListing.description.ilike(pattern))
        )

    query = query.order_by(LocalListing.created_at.desc())
    return paginate(query, page, limit)


def find_listing(db: Session, id_or_slug: str) -> Optional[LocalListing]:
    """Look a listing up by id first, then by slug."""
    listing = None
    try:
        listing_id = uuid.UUID(str(id_or_slug))
    except ValueError:
        listing_id = None
    if listing_id is not None:
        listing = _base_query(db).filter(LocalListing.id == listing_id).first()
    if listing is None:
        listing = _base_query(db).filter(LocalListing.slug == id_or_slug).first()
    return listing


def get_listing_detail(
    db: Session,
    id_or_slug: str,
    viewer: Optional[User] = None,
    now: Optional[datetime] = None,
) -> LocalListingDetail:
    listing = find_listing(db, id_or_slug)
    if not listing:
        raise NotFound("Listing not found")

    is_owner = viewer is not None and viewer.id == listing.user_id
    if not is_owner:
        # Non-owners never learn that unpublished listings exist
        if listing.status != ListingStatus.ACTIVE:
            raise NotFound("Listing not found")
        now = now or utcnow()
        if listing.expires_at and as_utc(listing.expires_at) < now:
            raise Gone("This listing has expired")

    base = LocalListingSchema.model_validate(listing)
    return LocalListingDetail(
        **base.model_dump(),
        is_owner=is_owner,
        user_rating=owner_rating_summary(db, listing.user_id),
    )


def list_locations(db: Session, category: Optional[ListingCategory] = None) -> list:
    """Distinct location slugs that have at least one active listing."""
    query = (
        db.query(LocalListing.location_slug)
        .filter(LocalListing.status == ListingStatus.ACTIVE)
        .distinct()
    )
    if category:
        query = query.filter(LocalListing.category == category)
    return sorted(row.location_slug for row in query.all())
