from typing import Annotated, List, Literal, Optional
from pydantic import BaseModel, Field, UUID4, field_validator
from datetime import datetime


class PollCreate(BaseModel):
    question: str = Field(..., min_length=1, max_length=200)
    options: Annotated[List[str], Field(min_length=2, max_length=6)]
    duration_days: int = Field(1, ge=1, le=7)

    @field_validator("options")
    @classmethod
    def strip_options(cls, v):
        cleaned = [opt.strip() for opt in v]
        if any(not opt or len(opt) > 100 for opt in cleaned):
            raise ValueError("Poll options must be 1-100 characters")
        return cleaned


class PollOption(BaseModel):
    id: UUID4
    text: str
    display_order: int
    votes: int = 0


class Poll(BaseModel):
    question: str
    expires_at: Optional[datetime] = None
    options: List[PollOption]
    total_votes: int = 0
    voted_option_id: Optional[UUID4] = None


# POST /updates/{id}/vote
class VoteRequest(BaseModel):
    option_id: UUID4


# POST /comment-polls/{comment_id}/vote
class CommentPollVoteRequest(VoteRequest):
    type: Literal["update-comment", "listing-comment"] = "update-comment"


class VoteResult(BaseModel):
    voted: bool = True
    options: List[PollOption]
    total_votes: int
    voted_option_id: UUID4


class VoteStatus(BaseModel):
    has_voted: bool
    voted_option_id: Optional[UUID4] = None
