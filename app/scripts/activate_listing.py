"""
Manually activate a paid (SERVICES) local listing, e.g. when the payment
webhook never arrived.

Usage:
    python -m app.scripts.activate_listing <listing-id>
    python -m app.scripts.activate_listing --list
"""
import logging
import sys
import uuid

from sqlalchemy.orm import joinedload

from app.core.errors import AppError
from app.db.session import SessionLocal
from app.models.local_listing import LocalListing, ListingCategory, ListingStatus
from app.services.listings import activate_listing

USAGE = "Usage: python -m app.scripts.activate_listing <listing-id> | --list"


def _poster(listing) -> str:
    user = listing.user
    if not user:
        return "unknown"
    return f"{user.full_name or user.handle} <{user.email}>"


def list_pending(db) -> int:
    pending = (
        db.query(LocalListing)
        .options(joinedload(LocalListing.user))
        .filter(
            LocalListing.category == ListingCategory.SERVICES,
            LocalListing.status.in_([ListingStatus.DRAFT, ListingStatus.PENDING_PAYMENT]),
        )
        .order_by(LocalListing.created_at.desc())
        .all()
    )
    if not pending:
        print("No pending paid listings found.")
        return 0

    print(f"Found {len(pending)} pending paid listing(s):\n")
    for listing in pending:
        print(f"  {listing.id}")
        print(f"    Title:      {listing.title}")
        print(f"    Status:     {listing.status.value}")
        print(f"    Posted by:  {_poster(listing)}")
        print(f"    Session ID: {listing.stripe_session_id or '-'}")
        print(f"    Created:    {listing.created_at}")
        print()
    return 0


def activate(db, raw_id: str) -> int:
    try:
        listing_id = uuid.UUID(raw_id)
    except ValueError:
        print(f"Error: Listing not found: {raw_id}")
        return 1

    listing = db.query(LocalListing).filter(LocalListing.id == listing_id).first()
    if not listing:
        print(f"Error: Listing not found: {raw_id}")
        return 1

    print(f"Listing:    {listing.title}")
    print(f"Category:   {listing.category.value}")
    print(f"Status:     {listing.status.value}")
    print(f"Posted by:  {_poster(listing)}")
    print(f"Session ID: {listing.stripe_session_id or '-'}")

    if listing.category != ListingCategory.SERVICES:
        print("Error: Only SERVICES listings require payment activation.")
        return 1

    if listing.status == ListingStatus.ACTIVE:
        print(f"Listing is already ACTIVE (expires {listing.expires_at}). Nothing to do.")
        return 0

    try:
        listing, _ = activate_listing(db, listing.id)
    except AppError as exc:
        print(f"Error: {exc.message}")
        return 1

    print(f"\nActivated. Expires at {listing.expires_at}.")
    return 0


def main(argv=None, session_factory=SessionLocal) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(USAGE)
        return 1

    db = session_factory()
    try:
        if args[0] == "--list":
            return list_pending(db)
        return activate(db, args[0])
    finally:
        db.close()


def run() -> None:
    logging.basicConfig(level=logging.WARNING)
    sys.exit(main())


if __name__ == "__main__":
    run()
