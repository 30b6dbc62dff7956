from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import AuthorizationError
from app.models.local_listing import LocalListingRating
from app.models.user import User
from app.schemas.local_listing import RatingCreate, RatingSummary
from app.services.listings import get_listing_or_404


def owner_rating_summary(db: Session, user_id) -> RatingSummary:
    """Average rating a user has received across all of their listings."""
    average, count = (
        db.query(func.avg(LocalListingRating.rating), func.count(LocalListingRating.id))
        .filter(LocalListingRating.rated_user_id == user_id)
        .one()
    )
    return RatingSummary(average=round(float(average or 0), 2), count=count or 0)


def get_rating(db: Session, rater: User, listing_id) -> Optional[LocalListingRating]:
    return (
        db.query(LocalListingRating)
        .filter(
            LocalListingRating.rater_id == rater.id,
            LocalListingRating.listing_id == listing_id,
        )
        .first()
    )


def rate_listing(db: Session, rater: User, listing_id, data: RatingCreate) -> LocalListingRating:
    """
    Rate the owner of a listing. One rating per rater per listing;
    rating again overwrites the earlier score.
    """
    listing = get_listing_or_404(db, listing_id)
    if listing.user_id == rater.id:
        raise AuthorizationError("You cannot rate your own listing")

    comment = (data.comment or "").strip() or None
    rating = get_rating(db, rater, listing.id)
    if rating:
        rating.rating = data.rating
        rating.comment = comment
    else:
        rating = LocalListingRating(
            listing_id=listing.id,
            rater_id=rater.id,
            rated_user_id=listing.user_id,
            rating=data.rating,
            comment=comment,
        )
        db.add(rating)

    db.commit()
    db.refresh(rating)
    return rating
