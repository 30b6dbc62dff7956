import uuid
from sqlalchemy import Column, String, Boolean, DateTime, func, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.db.session import Base

class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    handle = Column(String(50), unique=True, nullable=False, index=True) # @handle, profile URL
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    avatar_url = Column(Text, nullable=True)
    role = Column(String(20), default="user", nullable=False) # user, admin
    is_active = Column(Boolean, default=True)

    # Default location, used when a listing is posted without one
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    location_slug = Column(String(200), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    local_listings = relationship("LocalListing", back_populates="user", cascade="all, delete-orphan")
    updates = relationship("Update", back_populates="user", cascade="all, delete-orphan")
