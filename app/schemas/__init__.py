from app.schemas.common import PaginatedResponse, CursorPage, ErrorResponse, MessageResponse
from app.schemas.user import User, UserCreate, UserUpdate, UserSummary, Token, TokenPayload
from app.schemas.local_listing import (
    LocalListing, LocalListingCreate, LocalListingUpdate, LocalListingDetail,
    ListingImage, ListingImageIn, CheckoutResponse,
    FlagCreate, FlagCreated, Flag,
    Rating, RatingCreate, RatingSummary, RatingLookup,
    PaymentConfirmation, ActivationResult, ExpiryRun, ExpiryStats,
)
from app.schemas.poll import Poll, PollCreate, PollOption, VoteRequest, CommentPollVoteRequest, VoteResult, VoteStatus
from app.schemas.comment import Comment, CommentCreate, CommentUpdate
from app.schemas.update import Update, UpdateCreate, LikeResult, PinRequest, PinnedPost
