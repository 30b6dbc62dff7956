from typing import Optional
from pydantic import BaseModel, EmailStr, UUID4, Field
from datetime import datetime


# Shared properties
class UserBase(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    avatar_url: Optional[str] = None


# Properties to receive via API on creation (POST /auth/register)
class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    handle: Optional[str] = Field(None, max_length=50)
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


# Properties to receive via API on admin creation (POST /auth/admin/register)
class AdminCreate(UserCreate):
    admin_secret: str


# Properties to receive via API on update (PATCH /me)
class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class UserInDBBase(UserBase):
    id: UUID4
    handle: str
    role: str
    is_active: bool
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    location_slug: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Properties returned via API
class User(UserInDBBase):
    pass


# Compact user for nested responses (listing cards, comments, feed)
class UserSummary(BaseModel):
    id: UUID4
    handle: str
    full_name: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: User


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPayload(BaseModel):
    sub: Optional[str] = None
