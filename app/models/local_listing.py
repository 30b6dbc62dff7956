import uuid
import enum
from sqlalchemy import (
    Column, String, DateTime, func, Text, Integer, ForeignKey, UniqueConstraint,
    Enum as SAEnum, select,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, column_property
from app.db.session import Base


class ListingCategory(str, enum.Enum):
    COMMUNITY = "COMMUNITY"
    SERVICES = "SERVICES"
    DISCUSSION = "DISCUSSION"
    COWORKING_HOUSING = "COWORKING_HOUSING"
    FOR_SALE = "FOR_SALE"


class ListingStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    FLAGGED = "FLAGGED"
    REMOVED = "REMOVED"


class FlagReason(str, enum.Enum):
    SPAM = "SPAM"
    INAPPROPRIATE = "INAPPROPRIATE"
    SCAM = "SCAM"
    DUPLICATE = "DUPLICATE"
    WRONG_CATEGORY = "WRONG_CATEGORY"
    OTHER = "OTHER"


class LocalListing(Base):
    __tablename__ = "local_listings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slug = Column(String(150), unique=True, nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    category = Column(SAEnum(ListingCategory, native_enum=False), nullable=False, index=True)
    status = Column(SAEnum(ListingStatus, native_enum=False), nullable=False, default=ListingStatus.DRAFT, index=True)

    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price_in_cents = Column(Integer, nullable=True) # SERVICES only
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(30), nullable=True)
    contact_url = Column(Text, nullable=True)

    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=True)
    location_slug = Column(String(200), nullable=False, index=True)

    stripe_session_id = Column(String(255), nullable=True)
    activated_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    user = relationship("User", back_populates="local_listings")
    images = relationship(
        "LocalListingImage",
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="LocalListingImage.display_order",
    )
    flags = relationship("LocalListingFlag", back_populates="listing", cascade="all, delete-orphan")
    comments = relationship("LocalListingComment", back_populates="listing", cascade="all, delete-orphan")
    ratings = relationship("LocalListingRating", back_populates="listing", cascade="all, delete-orphan")


class LocalListingImage(Base):
    __tablename__ = "local_listing_images"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id = Column(UUID(as_uuid=True), ForeignKey("local_listings.id"), nullable=False, index=True)
    url = Column(Text, nullable=False)
    caption = Column(String(255), nullable=True)
    display_order = Column(Integer, default=0)

    listing = relationship("LocalListing", back_populates="images")


class LocalListingFlag(Base):
    __tablename__ = "local_listing_flags"
    __table_args__ = (UniqueConstraint("user_id", "listing_id", name="uq_flag_user_listing"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id = Column(UUID(as_uuid=True), ForeignKey("local_listings.id"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    reason = Column(SAEnum(FlagReason, native_enum=False), nullable=False)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    listing = relationship("LocalListing", back_populates="flags")
    user = relationship("User")


class LocalListingComment(Base):
    __tablename__ = "local_listing_comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id = Column(UUID(as_uuid=True), ForeignKey("local_listings.id"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    gif_url = Column(Text, nullable=True)
    video_url = Column(Text, nullable=True)
    poll_question = Column(String(200), nullable=True)
    poll_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    listing = relationship("LocalListing", back_populates="comments")
    user = relationship("User")
    poll_options = relationship(
        "PollOption",
        cascade="all, delete-orphan",
        order_by="PollOption.display_order",
        foreign_keys="PollOption.listing_comment_id",
    )


class LocalListingRating(Base):
    __tablename__ = "local_listing_ratings"
    __table_args__ = (UniqueConstraint("rater_id", "listing_id", name="uq_rating_rater_listing"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id = Column(UUID(as_uuid=True), ForeignKey("local_listings.id"), nullable=False, index=True)
    rater_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    rated_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False) # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    listing = relationship("LocalListing", back_populates="ratings")


# Store-maintained aggregates, evaluated as correlated subqueries on load
LocalListing.comment_count = column_property(
    select(func.count(LocalListingComment.id))
    .where(LocalListingComment.listing_id == LocalListing.id)
    .correlate_except(LocalListingComment)
    .scalar_subquery()
)
LocalListing.flag_count = column_property(
    select(func.count(LocalListingFlag.id))
    .where(LocalListingFlag.listing_id == LocalListing.id)
    .correlate_except(LocalListingFlag)
    .scalar_subquery()
)
