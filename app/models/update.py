import uuid
from sqlalchemy import Column, String, DateTime, func, Text, Integer, ForeignKey, UniqueConstraint, select
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, column_property
from app.db.session import Base

class Update(Base):
    """A feed post. May carry a poll; supports likes, pins and comments."""
    __tablename__ = "updates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    poll_question = Column(String(200), nullable=True)
    poll_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    user = relationship("User", back_populates="updates")
    likes = relationship("UpdateLike", back_populates="update", cascade="all, delete-orphan")
    comments = relationship("UpdateComment", back_populates="update", cascade="all, delete-orphan")
    pins = relationship("PinnedPost", back_populates="update", cascade="all, delete-orphan")
    poll_options = relationship(
        "PollOption",
        cascade="all, delete-orphan",
        order_by="PollOption.display_order",
        foreign_keys="PollOption.update_id",
    )

class UpdateLike(Base):
    __tablename__ = "update_likes"
    __table_args__ = (UniqueConstraint("user_id", "update_id", name="uq_like_user_update"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    update_id = Column(UUID(as_uuid=True), ForeignKey("updates.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    update = relationship("Update", back_populates="likes")

class PinnedPost(Base):
    __tablename__ = "pinned_posts"
    __table_args__ = (UniqueConstraint("user_id", "update_id", name="uq_pin_user_update"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    update_id = Column(UUID(as_uuid=True), ForeignKey("updates.id"), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    update = relationship("Update", back_populates="pins")

class UpdateComment(Base):
    __tablename__ = "update_comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    update_id = Column(UUID(as_uuid=True), ForeignKey("updates.id"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    gif_url = Column(Text, nullable=True)
    video_url = Column(Text, nullable=True)
    poll_question = Column(String(200), nullable=True)
    poll_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    update = relationship("Update", back_populates="comments")
    user = relationship("User")
    poll_options = relationship(
        "PollOption",
        cascade="all, delete-orphan",
        order_by="PollOption.display_order",
        foreign_keys="PollOption.update_comment_id",
    )

Update.likes_count = column_property(
    select(func.count(UpdateLike.id))
    .where(UpdateLike.update_id == Update.id)
    .correlate_except(UpdateLike)
    .scalar_subquery()
)
Update.comments_count = column_property(
    select(func.count(UpdateComment.id))
    .where(UpdateComment.update_id == Update.id)
    .correlate_except(UpdateComment)
    .scalar_subquery()
)
