import uuid

from app.models.local_listing import LocalListing, ListingCategory, ListingStatus
from app.scripts.activate_listing import main


def test_list_with_nothing_pending(session_factory, capsys):
    assert main(["--list"], session_factory) == 0
    assert "No pending paid listings found." in capsys.readouterr().out


def test_list_shows_pending_paid_listings(session_factory, make_user, make_listing, capsys):
    make_listing(make_user(), category=ListingCategory.SERVICES, title="Piano lessons")
    make_listing(make_user(), title="Free piano")

    assert main(["--list"], session_factory) == 0
    out = capsys.readouterr().out
    assert "Piano lessons" in out
    assert "Free piano" not in out


def test_missing_argument(session_factory, capsys):
    assert main([], session_factory) == 1
    assert "Usage" in capsys.readouterr().out


def test_unknown_listing(session_factory, capsys):
    assert main([str(uuid.uuid4())], session_factory) == 1
    assert main(["not-a-uuid"], session_factory) == 1
    assert "Listing not found" in capsys.readouterr().out


def test_refuses_free_listing(session_factory, make_user, make_listing):
    listing = make_listing(make_user())
    assert main([str(listing.id)], session_factory) == 1


def test_activates_draft(db, session_factory, make_user, make_listing, capsys):
    listing = make_listing(make_user(), category=ListingCategory.SERVICES)

    assert main([str(listing.id)], session_factory) == 0
    assert "Activated" in capsys.readouterr().out

    db.expire_all()
    activated = db.get(LocalListing, listing.id)
    assert activated.status == ListingStatus.ACTIVE
    expires_at = activated.expires_at

    # Second run leaves the expiry alone
    assert main([str(listing.id)], session_factory) == 0
    assert "already ACTIVE" in capsys.readouterr().out
    db.expire_all()
    assert db.get(LocalListing, listing.id).expires_at == expires_at
