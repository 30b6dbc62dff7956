from fastapi import APIRouter

# Auth
from app.api.v1.public.auth import router as auth_router

# Public: profile
from app.api.v1.public.me import router as me_router

# Public: local listings, flags, ratings, listing comments
from app.api.v1.public.local_listings import (
    router as local_listings_router,
    listing_comment_router,
)

# Public: updates feed, likes, polls, pins
from app.api.v1.public.updates import (
    router as updates_router,
    update_comment_router,
    comment_poll_router,
    pinned_router,
)

# Admin
from app.api.v1.admin.local_listings import router as admin_local_listings_router

# Machine callers (scheduler, payment processor)
from app.api.v1.internal.cron import router as cron_router
from app.api.v1.internal.payments import router as payments_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: profile ---
api_router.include_router(me_router)

# --- Public: local listings ---
api_router.include_router(local_listings_router)
api_router.include_router(listing_comment_router)

# --- Public: updates ---
api_router.include_router(updates_router)
api_router.include_router(update_comment_router)
api_router.include_router(comment_poll_router)
api_router.include_router(pinned_router)

# --- Admin ---
api_router.include_router(admin_local_listings_router)

# --- Internal ---
api_router.include_router(cron_router)
api_router.include_router(payments_router)
