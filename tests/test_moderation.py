import pytest

from app.core.config import settings
from app.core.errors import AuthorizationError, Conflict, InvalidTransition, NotFound, ValidationError
from app.models.local_listing import LocalListing, LocalListingFlag, ListingStatus
from app.services import moderation

API = settings.API_V1_STR


def test_invalid_reason_is_rejected_before_insert(db, make_user, make_listing):
    listing = make_listing(make_user())
    with pytest.raises(ValidationError):
        moderation.file_flag(db, listing.id, make_user(), "BORING")
    assert db.query(LocalListingFlag).count() == 0


def test_description_length_limit(db, make_user, make_listing):
    listing = make_listing(make_user())
    with pytest.raises(ValidationError):
        moderation.file_flag(db, listing.id, make_user(), "SPAM", "x" * 501)


def test_cannot_flag_own_listing(db, make_user, make_listing):
    owner = make_user()
    listing = make_listing(owner)
    with pytest.raises(AuthorizationError):
        moderation.file_flag(db, listing.id, owner, "SPAM")


def test_one_flag_per_user(db, make_user, make_listing):
    listing = make_listing(make_user())
    reporter = make_user()
    moderation.file_flag(db, listing.id, reporter, "SPAM")
    with pytest.raises(Conflict):
        moderation.file_flag(db, listing.id, reporter, "SCAM")


def test_threshold_flags_listing_and_restore_clears(db, make_user, make_listing):
    listing = make_listing(make_user())
    for _ in range(settings.FLAG_THRESHOLD - 1):
        moderation.file_flag(db, listing.id, make_user(), "SPAM")
    db.refresh(listing)
    assert listing.status == ListingStatus.ACTIVE

    moderation.file_flag(db, listing.id, make_user(), "SCAM")
    db.refresh(listing)
    assert listing.status == ListingStatus.FLAGGED
    assert listing.flag_count == settings.FLAG_THRESHOLD

    restored = moderation.restore_listing(db, listing.id)
    assert restored.status == ListingStatus.ACTIVE
    assert db.query(LocalListingFlag).count() == 0


def test_restore_only_from_flagged(db, make_user, make_listing):
    listing = make_listing(make_user())
    with pytest.raises(InvalidTransition):
        moderation.restore_listing(db, listing.id)


def test_remove_is_idempotent(db, make_user, make_listing):
    listing = make_listing(make_user())
    assert moderation.remove_listing(db, listing.id).status == ListingStatus.REMOVED
    assert moderation.remove_listing(db, listing.id).status == ListingStatus.REMOVED


def test_withdraw_missing_flag(db, make_user, make_listing):
    listing = make_listing(make_user())
    with pytest.raises(NotFound):
        moderation.withdraw_flag(db, listing.id, make_user())


def test_flag_endpoint(client, make_user, make_listing, auth):
    listing = make_listing(make_user())
    reporter = make_user()

    response = client.post(
        f"{API}/local-listings/{listing.id}/flag",
        json={"reason": "NOT_A_REASON"},
        headers=auth(reporter),
    )
    assert response.status_code == 422

    response = client.post(
        f"{API}/local-listings/{listing.id}/flag",
        json={"reason": "SPAM", "description": "Posted five times"},
        headers=auth(reporter),
    )
    assert response.status_code == 201
    assert response.json()["success"] is True

    again = client.post(
        f"{API}/local-listings/{listing.id}/flag", json={"reason": "SPAM"}, headers=auth(reporter)
    )
    assert again.status_code == 409


def test_flagged_listing_leaves_feed_until_admin_restores(client, db, make_user, make_listing, auth):
    listing = make_listing(make_user())
    for _ in range(settings.FLAG_THRESHOLD):
        client.post(
            f"{API}/local-listings/{listing.id}/flag",
            json={"reason": "SCAM"},
            headers=auth(make_user()),
        )
    assert client.get(f"{API}/local-listings/").json()["total"] == 0

    admin = make_user(role="admin")
    queue = client.get(
        f"{API}/admin/local-listings/", params={"status": "FLAGGED"}, headers=auth(admin)
    ).json()
    assert [item["id"] for item in queue["data"]] == [str(listing.id)]

    flags = client.get(f"{API}/admin/local-listings/{listing.id}/flags", headers=auth(admin)).json()
    assert len(flags) == settings.FLAG_THRESHOLD

    restored = client.post(f"{API}/admin/local-listings/{listing.id}/restore", headers=auth(admin))
    assert restored.json()["status"] == "ACTIVE"
    assert client.get(f"{API}/local-listings/").json()["total"] == 1

    removed = client.post(f"{API}/admin/local-listings/{listing.id}/remove", headers=auth(admin))
    assert removed.json()["status"] == "REMOVED"
    db.expire_all()
    assert db.get(LocalListing, listing.id).status == ListingStatus.REMOVED
