from datetime import timedelta

import pytest

from app.core.errors import AuthorizationError, InvalidTransition, ValidationError
from app.models.local_listing import LocalListing, ListingCategory, ListingStatus
from app.schemas.local_listing import LocalListingCreate, LocalListingUpdate
from app.services import listings
from app.services.checkout import CheckoutGateway
from app.utils.timeutils import as_utc, utcnow


def test_free_listing_is_active_for_thirty_days(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner, category=ListingCategory.FOR_SALE, price_in_cents=500)

    assert listing.status == ListingStatus.ACTIVE
    assert listing.price_in_cents is None
    assert as_utc(listing.expires_at) - as_utc(listing.activated_at) == timedelta(days=30)


def test_services_listing_starts_as_draft_with_price(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner, category=ListingCategory.SERVICES, price_in_cents=2500)

    assert listing.status == ListingStatus.DRAFT
    assert listing.price_in_cents == 2500
    assert listing.expires_at is None
    assert listing.activated_at is None


def test_services_listing_with_empty_price_stays_draft(db, make_user):
    owner = make_user()
    data = LocalListingCreate(
        title="Tutoring",
        description="Math and physics",
        category="SERVICES",
        price_in_cents="",
    )
    listing = listings.create_listing(db, owner, data)

    assert listing.price_in_cents is None
    assert listing.status == ListingStatus.DRAFT


def test_location_falls_back_to_owner_profile(db, make_user, make_listing):
    owner = make_user(city="Portland", state="OR")
    listing = make_listing(owner)

    assert listing.city == "Portland"
    assert listing.location_slug == "portland-or"


def test_listing_without_any_location_is_rejected(db, make_user, make_listing):
    owner = make_user(city=None, state=None)
    with pytest.raises(ValidationError):
        make_listing(owner)
    assert db.query(LocalListing).count() == 0


def test_activation_sets_ninety_day_window(db, make_user, make_listing):
    owner = make_user()
    draft = make_listing(owner, category=ListingCategory.SERVICES, price_in_cents=1000)
    now = utcnow()

    listing, changed = listings.activate_listing(db, draft.id, now=now)

    assert changed is True
    assert listing.status == ListingStatus.ACTIVE
    assert as_utc(listing.activated_at) == now
    assert as_utc(listing.expires_at) == now + timedelta(days=90)


def test_second_activation_is_a_no_op(db, make_user, make_listing):
    owner = make_user()
    draft = make_listing(owner, category=ListingCategory.SERVICES, price_in_cents=1000)
    first, _ = listings.activate_listing(db, draft.id, now=utcnow())
    expires_at = first.expires_at

    again, changed = listings.activate_listing(db, draft.id, now=utcnow() + timedelta(days=5))

    assert changed is False
    assert again.expires_at == expires_at


@pytest.mark.parametrize("status", [ListingStatus.FLAGGED, ListingStatus.REMOVED])
def test_moderated_listings_cannot_be_activated(db, make_user, make_listing, status):
    owner = make_user()
    listing = make_listing(owner)
    listing.status = status
    db.commit()

    with pytest.raises(InvalidTransition):
        listings.activate_listing(db, listing.id)


def test_expired_listing_can_be_reactivated(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner, category=ListingCategory.SERVICES, price_in_cents=1000)
    listing.status = ListingStatus.EXPIRED
    db.commit()

    listing, changed = listings.activate_listing(db, listing.id)
    assert changed is True
    assert listing.status == ListingStatus.ACTIVE


def test_checkout_moves_draft_to_pending_payment(db, make_user, make_listing):
    owner = make_user()
    draft = make_listing(owner, category=ListingCategory.SERVICES, price_in_cents=1000)

    session = listings.start_checkout(db, owner, draft.id, CheckoutGateway("https://pay.test"))

    db.refresh(draft)
    assert draft.status == ListingStatus.PENDING_PAYMENT
    assert draft.stripe_session_id == session.id
    assert session.url.startswith("https://pay.test/")


def test_checkout_rejects_free_listing(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner)
    with pytest.raises(ValidationError):
        listings.start_checkout(db, owner, listing.id, CheckoutGateway())


def test_checkout_only_for_owner(db, make_user, make_listing):
    owner, other = make_user(), make_user()
    draft = make_listing(owner, category=ListingCategory.SERVICES)
    with pytest.raises(AuthorizationError):
        listings.start_checkout(db, other, draft.id, CheckoutGateway())


def test_activation_rejects_foreign_checkout_session(db, make_user, make_listing):
    owner = make_user()
    draft = make_listing(owner, category=ListingCategory.SERVICES)
    listings.start_checkout(db, owner, draft.id, CheckoutGateway())

    with pytest.raises(ValidationError):
        listings.activate_listing(db, draft.id, session_id="cs_someone_else")
    db.refresh(draft)
    assert draft.status == ListingStatus.PENDING_PAYMENT


def test_update_requires_owner(db, make_user, make_listing):
    owner, other = make_user(), make_user()
    listing = make_listing(owner)
    with pytest.raises(AuthorizationError):
        listings.update_listing(db, other, listing.id, LocalListingUpdate(title="Mine now"))


def test_update_changes_location_slug(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner)
    listing = listings.update_listing(
        db, owner, listing.id, LocalListingUpdate(city="Boulder", state="CO")
    )
    assert listing.location_slug == "boulder-co"


def test_expire_listings_only_touches_overdue_active(db, make_user, make_listing):
    owner = make_user()
    overdue = make_listing(owner, title="Old couch")
    fresh = make_listing(owner, title="New couch")
    draft = make_listing(owner, category=ListingCategory.SERVICES)
    overdue.expires_at = utcnow() - timedelta(days=1)
    db.commit()

    assert listings.expire_listings(db) == 1
    assert listings.expire_listings(db) == 0

    db.expire_all()
    assert db.get(LocalListing, overdue.id).status == ListingStatus.EXPIRED
    assert db.get(LocalListing, fresh.id).status == ListingStatus.ACTIVE
    assert db.get(LocalListing, draft.id).status == ListingStatus.DRAFT


def test_purge_abandoned_drafts(db, make_user, make_listing):
    owner = make_user()
    stale = make_listing(owner, category=ListingCategory.SERVICES, title="Stale")
    recent = make_listing(owner, category=ListingCategory.SERVICES, title="Recent")
    stale.created_at = utcnow() - timedelta(days=45)
    db.commit()
    stale_id, recent_id = stale.id, recent.id

    assert listings.purge_abandoned_drafts(db, older_than_days=30) == 1
    db.expire_all()
    assert db.get(LocalListing, stale_id) is None
    assert db.get(LocalListing, recent_id) is not None


def test_expiry_stats(db, make_user, make_listing):
    owner = make_user()
    soon = make_listing(owner, title="Soon")
    make_listing(owner, category=ListingCategory.SERVICES)
    soon.expires_at = utcnow() + timedelta(days=2)
    db.commit()

    stats = listings.expiry_stats(db)
    assert stats["expiring_this_week"] == 1
    assert stats["pending_expiration"] == 0
    assert stats["by_status"] == {"ACTIVE": 1, "DRAFT": 1}
    assert stats["active_by_category"] == {"COMMUNITY": 1}


def test_every_category_has_a_duration():
    for category in ListingCategory:
        expected = 90 if category == ListingCategory.SERVICES else 30
        assert listings.duration(category) == timedelta(days=expected)


def test_update_cannot_blank_title(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner, title="Porch sale")

    with pytest.raises(ValidationError):
        listings.update_listing(db, owner, listing.id, LocalListingUpdate(title="   "))

    db.expire_all()
    assert db.get(LocalListing, listing.id).title == "Porch sale"


def test_update_strips_description(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner)
    listing = listings.update_listing(
        db, owner, listing.id, LocalListingUpdate(description="  Now with lemonade  ")
    )
    assert listing.description == "Now with lemonade"
