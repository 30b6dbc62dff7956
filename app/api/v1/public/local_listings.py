from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, get_optional_user
from app.models.user import User
from app.models.local_listing import ListingCategory, ListingStatus
from app.schemas.common import ERROR_RESPONSES, PaginatedResponse, MessageResponse
from app.schemas.comment import Comment, CommentCreate, CommentUpdate
from app.schemas.local_listing import (
    CheckoutResponse,
    FlagCreate,
    FlagCreated,
    LocalListing as LocalListingSchema,
    LocalListingCreate,
    LocalListingDetail,
    LocalListingUpdate,
    Rating,
    RatingCreate,
    RatingLookup,
)
from app.services import comments as comment_service
from app.services import listing_feed, listings, moderation, ratings
from app.services.checkout import CheckoutGateway, get_checkout_gateway

router = APIRouter(prefix="/local-listings", tags=["Local Listings"], responses=ERROR_RESPONSES)
listing_comment_router = APIRouter(prefix="/local-listing-comments", tags=["Local Listings"], responses=ERROR_RESPONSES)


# ---------------------------------------------------------------------------
# Feed / discovery
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[LocalListingSchema])
def list_local_listings(
    category: Optional[ListingCategory] = None,
    location_slug: Optional[str] = None,
    search: Optional[str] = None,
    mine: bool = Query(False, description="Owner dashboard: all of my listings in any status"),
    status: Optional[ListingStatus] = Query(None, description="Only with mine=true"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return PaginatedResponse(
        **listing_feed.list_listings(
            db,
            viewer=viewer,
            category=category,
            location_slug=location_slug,
            search=search,
            mine=mine,
            status=status,
            page=page,
            limit=limit,
        )
    )


@router.get("/locations", response_model=List[str])
def list_locations(
    category: Optional[ListingCategory] = None,
    db: Session = Depends(get_db),
):
    """Location slugs that have at least one active listing."""
    return listing_feed.list_locations(db, category)


@router.get("/{id_or_slug}", response_model=LocalListingDetail)
def get_local_listing(
    id_or_slug: str,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return listing_feed.get_listing_detail(db, id_or_slug, viewer)


# ---------------------------------------------------------------------------
# Owner actions
# ---------------------------------------------------------------------------


@router.post("/", response_model=LocalListingSchema, status_code=status.HTTP_201_CREATED)
def create_local_listing(
    data: LocalListingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create a listing.

    - SERVICES listings start as DRAFT and must go through checkout.
    - All other categories are ACTIVE immediately for 30 days.
    """
    return listings.create_listing(db, current_user, data)


@router.patch("/{id}", response_model=LocalListingSchema)
def update_local_listing(
    id: UUID,
    data: LocalListingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return listings.update_listing(db, current_user, id, data)


@router.delete("/{id}", response_model=MessageResponse)
def delete_local_listing(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    listings.delete_listing(db, current_user, id)
    return MessageResponse(message="Listing deleted")


@router.post("/{id}/checkout", response_model=CheckoutResponse)
def checkout_local_listing(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: CheckoutGateway = Depends(get_checkout_gateway),
):
    """Open a payment session for a SERVICES listing; the client redirects to `url`."""
    session = listings.start_checkout(db, current_user, id, gateway)
    return CheckoutResponse(url=session.url, session_id=session.id)


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------


@router.post("/{id}/flag", response_model=FlagCreated, status_code=status.HTTP_201_CREATED)
def flag_local_listing(
    id: UUID,
    data: FlagCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    flag = moderation.file_flag(db, id, current_user, data.reason, data.description)
    return FlagCreated(
        flag_id=flag.id,
        message="Thank you for reporting this listing. We will review it shortly.",
    )


@router.delete("/{id}/flag", response_model=MessageResponse)
def withdraw_local_listing_flag(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    moderation.withdraw_flag(db, id, current_user)
    return MessageResponse(message="Flag removed")


# ---------------------------------------------------------------------------
# Owner ratings
# ---------------------------------------------------------------------------


@router.get("/{id}/rating", response_model=RatingLookup)
def get_my_rating(
    id: UUID,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    """The caller's rating of this listing's owner, if any."""
    if viewer is None:
        return RatingLookup(rating=None)
    return RatingLookup(rating=ratings.get_rating(db, viewer, id))


@router.post("/{id}/rating", response_model=Rating)
def rate_listing_owner(
    id: UUID,
    data: RatingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ratings.rate_listing(db, current_user, id, data)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.get("/{id}/comments", response_model=PaginatedResponse[Comment])
def list_listing_comments(
    id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    kind = comment_service.LISTING_THREAD
    result = comment_service.list_comments(db, kind, id, viewer, page, limit)
    result["data"] = [comment_service.serialize_comment(db, kind, c, viewer) for c in result["data"]]
    return PaginatedResponse(**result)


@router.post("/{id}/comments", response_model=Comment, status_code=status.HTTP_201_CREATED)
def create_listing_comment(
    id: UUID,
    data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    kind = comment_service.LISTING_THREAD
    comment = comment_service.create_comment(db, kind, id, current_user, data)
    return comment_service.serialize_comment(db, kind, comment, current_user)


@listing_comment_router.patch("/{comment_id}", response_model=Comment)
def edit_listing_comment(
    comment_id: UUID,
    data: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    kind = comment_service.LISTING_THREAD
    comment = comment_service.edit_comment(db, kind, comment_id, current_user, data)
    return comment_service.serialize_comment(db, kind, comment, current_user)


@listing_comment_router.delete("/{comment_id}", response_model=MessageResponse)
def delete_listing_comment(
    comment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment_service.delete_comment(db, comment_service.LISTING_THREAD, comment_id, current_user)
    return MessageResponse(message="Comment deleted")
