from typing import List, Optional
from pydantic import BaseModel, UUID4
from datetime import datetime

from app.schemas.user import UserSummary
from app.schemas.poll import Poll, PollCreate


# Length limits differ per thread (listing vs update), so they are
# enforced by the comment service rather than here.
class CommentCreate(BaseModel):
    content: str = ""
    image_url: Optional[str] = None
    gif_url: Optional[str] = None
    video_url: Optional[str] = None
    poll: Optional[PollCreate] = None


class CommentUpdate(BaseModel):
    content: Optional[str] = None
    image_url: Optional[str] = None
    gif_url: Optional[str] = None
    video_url: Optional[str] = None
    poll: Optional[PollCreate] = None


class Comment(BaseModel):
    id: UUID4
    parent_id: UUID4
    user: UserSummary
    content: str
    content_html: str = ""
    mentions: List[str] = []
    image_url: Optional[str] = None
    gif_url: Optional[str] = None
    video_url: Optional[str] = None
    poll: Optional[Poll] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
