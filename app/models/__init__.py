from app.models.user import User
from app.models.local_listing import (
    LocalListing,
    LocalListingImage,
    LocalListingFlag,
    LocalListingComment,
    LocalListingRating,
    ListingCategory,
    ListingStatus,
    FlagReason,
)
from app.models.update import Update, UpdateLike, PinnedPost, UpdateComment
from app.models.poll import PollOption, PollVote
