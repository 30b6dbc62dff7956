import uuid
from sqlalchemy import Column, String, DateTime, func, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.db.session import Base

# A poll hangs off exactly one of: an update, an update comment, a listing comment.
# Exactly one of the three target columns is set on every row.

class PollOption(Base):
    __tablename__ = "poll_options"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    update_id = Column(UUID(as_uuid=True), ForeignKey("updates.id"), nullable=True, index=True)
    update_comment_id = Column(UUID(as_uuid=True), ForeignKey("update_comments.id"), nullable=True, index=True)
    listing_comment_id = Column(UUID(as_uuid=True), ForeignKey("local_listing_comments.id"), nullable=True, index=True)
    text = Column(String(100), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    votes = relationship("PollVote", back_populates="option", cascade="all, delete-orphan")

class PollVote(Base):
    __tablename__ = "poll_votes"
    # NULLs never collide, so each constraint only bites for its own target kind
    __table_args__ = (
        UniqueConstraint("user_id", "update_id", name="uq_vote_user_update"),
        UniqueConstraint("user_id", "update_comment_id", name="uq_vote_user_update_comment"),
        UniqueConstraint("user_id", "listing_comment_id", name="uq_vote_user_listing_comment"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    option_id = Column(UUID(as_uuid=True), ForeignKey("poll_options.id"), nullable=False, index=True)
    update_id = Column(UUID(as_uuid=True), ForeignKey("updates.id"), nullable=True)
    update_comment_id = Column(UUID(as_uuid=True), ForeignKey("update_comments.id"), nullable=True)
    listing_comment_id = Column(UUID(as_uuid=True), ForeignKey("local_listing_comments.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    option = relationship("PollOption", back_populates="votes")
