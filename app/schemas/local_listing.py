from typing import Optional, List
from pydantic import BaseModel, Field, UUID4, field_validator
from datetime import datetime

from app.models.local_listing import ListingCategory, ListingStatus, FlagReason
from app.schemas.user import UserSummary


# Listing images
class ListingImageIn(BaseModel):
    url: str = Field(..., min_length=1)
    caption: Optional[str] = Field(None, max_length=255)


class ListingImage(ListingImageIn):
    id: UUID4
    display_order: int

    class Config:
        from_attributes = True


# LocalListing: Create (POST /local-listings)
class LocalListingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=5000)
    category: ListingCategory
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    location_slug: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_url: Optional[str] = None
    price_in_cents: Optional[int] = Field(None, ge=0)
    images: List[ListingImageIn] = []

    @field_validator("price_in_cents", "zip_code", "contact_email", "contact_phone", "contact_url", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if v == "":
            return None
        return v


# LocalListing: Update (PATCH /local-listings/{id})
class LocalListingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_url: Optional[str] = None
    price_in_cents: Optional[int] = Field(None, ge=0)
    images: Optional[List[ListingImageIn]] = None

    @field_validator("price_in_cents", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if v == "":
            return None
        return v


class LocalListing(BaseModel):
    id: UUID4
    slug: str
    user_id: UUID4
    category: ListingCategory
    status: ListingStatus
    title: str
    description: str
    price_in_cents: Optional[int] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_url: Optional[str] = None
    city: str
    state: str
    zip_code: Optional[str] = None
    location_slug: str
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    comment_count: int = 0
    flag_count: int = 0
    user: Optional[UserSummary] = None
    images: List[ListingImage] = []

    class Config:
        from_attributes = True


class RatingSummary(BaseModel):
    average: float = 0
    count: int = 0


# GET /local-listings/{id_or_slug}
class LocalListingDetail(LocalListing):
    is_owner: bool = False
    user_rating: RatingSummary = RatingSummary()


class CheckoutResponse(BaseModel):
    url: str
    session_id: str


# Flags
class FlagCreate(BaseModel):
    reason: FlagReason
    description: Optional[str] = Field(None, max_length=500)


class FlagCreated(BaseModel):
    success: bool = True
    flag_id: UUID4
    message: str


class Flag(BaseModel):
    id: UUID4
    listing_id: UUID4
    user_id: UUID4
    reason: FlagReason
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Ratings of the listing's owner
class RatingCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class Rating(BaseModel):
    id: UUID4
    listing_id: UUID4
    rater_id: UUID4
    rated_user_id: UUID4
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RatingLookup(BaseModel):
    rating: Optional[Rating] = None


# Payment webhook (POST /payments/webhook)
class PaymentConfirmation(BaseModel):
    listing_id: UUID4
    session_id: Optional[str] = None


class ActivationResult(BaseModel):
    changed: bool
    listing: LocalListing


# Cron (GET|POST /cron/expire-local-listings)
class ExpiryRun(BaseModel):
    success: bool = True
    expired_count: int
    purged_drafts: int
    timestamp: datetime


class ExpiryStats(BaseModel):
    pending_expiration: int
    expiring_this_week: int
    by_status: dict[str, int]
    active_by_category: dict[str, int]
