from typing import List, Optional
from pydantic import BaseModel, Field, UUID4
from datetime import datetime

from app.schemas.user import UserSummary
from app.schemas.poll import Poll, PollCreate


class UpdateCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    image_url: Optional[str] = None
    poll: Optional[PollCreate] = None


class Update(BaseModel):
    id: UUID4
    user: UserSummary
    content: str
    content_html: str = ""
    mentions: List[str] = []
    image_url: Optional[str] = None
    poll: Optional[Poll] = None
    likes_count: int = 0
    comments_count: int = 0
    liked: bool = False
    is_pinned: bool = False
    created_at: datetime


# POST /updates/{id}/like
class LikeResult(BaseModel):
    liked: bool
    likes_count: int


# POST /pinned-posts
class PinRequest(BaseModel):
    update_id: UUID4


class PinnedPost(BaseModel):
    id: UUID4
    update_id: UUID4
    display_order: int
    update: Update
