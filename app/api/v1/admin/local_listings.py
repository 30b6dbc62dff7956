from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.local_listing import LocalListing, ListingCategory, ListingStatus
from app.schemas.common import ERROR_RESPONSES, PaginatedResponse, paginate
from app.schemas.local_listing import ActivationResult, Flag, LocalListing as LocalListingSchema
from app.services import listings, moderation

router = APIRouter(prefix="/admin/local-listings", tags=["Admin - Local Listings"], responses=ERROR_RESPONSES)


@router.get("/", response_model=PaginatedResponse[LocalListingSchema])
def list_all_listings(
    status: Optional[ListingStatus] = None,
    category: Optional[ListingCategory] = None,
    sort: Optional[str] = Query("newest", pattern="^(newest|oldest|most_flagged)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Moderation queue: every listing regardless of status, e.g. `?status=FLAGGED`."""
    query = db.query(LocalListing).options(joinedload(LocalListing.user))
    if status:
        query = query.filter(LocalListing.status == status)
    if category:
        query = query.filter(LocalListing.category == category)

    if sort == "most_flagged":
        order = LocalListing.flag_count.desc()
    elif sort == "oldest":
        order = LocalListing.created_at.asc()
    else:
        order = LocalListing.created_at.desc()
    query = query.order_by(order)

    return PaginatedResponse(**paginate(query, page, limit))


@router.get("/{id}/flags", response_model=List[Flag])
def list_listing_flags(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return moderation.list_flags(db, id)


@router.post("/{id}/activate", response_model=ActivationResult)
def force_activate_listing(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Manual activation, bypassing payment verification.
    Only for recovering listings whose payment webhook never arrived.
    """
    listing, changed = listings.activate_listing(db, id)
    return ActivationResult(changed=changed, listing=LocalListingSchema.model_validate(listing))


@router.post("/{id}/remove", response_model=LocalListingSchema)
def remove_listing(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return moderation.remove_listing(db, id)


@router.post("/{id}/restore", response_model=LocalListingSchema)
def restore_listing(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return moderation.restore_listing(db, id)
