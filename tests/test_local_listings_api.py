from datetime import timedelta

from app.core.config import settings
from app.models.local_listing import LocalListing, ListingCategory, ListingStatus
from app.utils.timeutils import utcnow

API = settings.API_V1_STR


def _payload(**overrides):
    payload = {
        "title": "Community cleanup",
        "description": "Saturday morning at the park",
        "category": "COMMUNITY",
    }
    payload.update(overrides)
    return payload


def test_create_requires_auth(client):
    response = client.post(f"{API}/local-listings/", json=_payload())
    assert response.status_code == 401


def test_create_free_listing_shows_in_feed(client, make_user, auth):
    owner = make_user()
    response = client.post(f"{API}/local-listings/", json=_payload(), headers=auth(owner))
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "ACTIVE"
    assert body["location_slug"] == "austin-tx"

    feed = client.get(f"{API}/local-listings/", params={"location_slug": "austin-tx"}).json()
    assert feed["total"] == 1
    assert feed["data"][0]["id"] == body["id"]


def test_unknown_category_is_rejected(client, make_user, auth):
    owner = make_user()
    response = client.post(
        f"{API}/local-listings/", json=_payload(category="JOBS"), headers=auth(owner)
    )
    assert response.status_code == 422


def test_draft_hidden_from_public_but_visible_to_owner(client, make_user, auth):
    owner = make_user()
    created = client.post(
        f"{API}/local-listings/",
        json=_payload(category="SERVICES", price_in_cents=""),
        headers=auth(owner),
    ).json()
    assert created["status"] == "DRAFT"
    assert created["price_in_cents"] is None

    public = client.get(f"{API}/local-listings/").json()
    assert public["total"] == 0

    mine = client.get(f"{API}/local-listings/", params={"mine": True}, headers=auth(owner)).json()
    assert [item["id"] for item in mine["data"]] == [created["id"]]

    assert client.get(f"{API}/local-listings/{created['slug']}").status_code == 404
    detail = client.get(f"{API}/local-listings/{created['id']}", headers=auth(owner))
    assert detail.status_code == 200
    assert detail.json()["is_owner"] is True


def test_mine_without_login_is_empty(client, make_user, make_listing):
    make_listing(make_user())
    body = client.get(f"{API}/local-listings/", params={"mine": True}).json()
    assert body["data"] == []
    assert body["total"] == 0


def test_feed_is_newest_first_and_filtered(client, db, make_user, make_listing):
    owner = make_user()
    now = utcnow()
    old = make_listing(owner, title="Old bike")
    new = make_listing(owner, title="New bike", category=ListingCategory.FOR_SALE)
    middle = make_listing(owner, title="Middle bike", category=ListingCategory.FOR_SALE)
    old.created_at = now - timedelta(hours=3)
    middle.created_at = now - timedelta(hours=2)
    new.created_at = now - timedelta(hours=1)
    db.commit()

    body = client.get(f"{API}/local-listings/").json()
    assert [item["title"] for item in body["data"]] == ["New bike", "Middle bike", "Old bike"]

    body = client.get(f"{API}/local-listings/", params={"category": "FOR_SALE"}).json()
    assert [item["title"] for item in body["data"]] == ["New bike", "Middle bike"]

    body = client.get(f"{API}/local-listings/", params={"search": "OLD"}).json()
    assert [item["title"] for item in body["data"]] == ["Old bike"]


def test_expired_listing_returns_gone_for_visitors(client, db, make_user, make_listing, auth):
    owner = make_user()
    listing = make_listing(owner)
    listing.expires_at = utcnow() - timedelta(minutes=5)
    db.commit()

    assert client.get(f"{API}/local-listings/{listing.slug}").status_code == 410
    assert client.get(f"{API}/local-listings/{listing.slug}", headers=auth(owner)).status_code == 200
    assert client.get(f"{API}/local-listings/").json()["total"] == 0


def test_only_owner_can_delete(client, make_user, make_listing, auth):
    owner, other = make_user(), make_user()
    listing = make_listing(owner)

    response = client.delete(f"{API}/local-listings/{listing.id}", headers=auth(other))
    assert response.status_code == 403
    assert "permission" in response.json()["detail"]

    response = client.delete(f"{API}/local-listings/{listing.id}", headers=auth(owner))
    assert response.status_code == 200
    assert client.get(f"{API}/local-listings/{listing.id}").status_code == 404


def test_checkout_and_webhook_activate_once(client, db, make_user, make_listing, auth):
    owner = make_user()
    draft = make_listing(owner, category=ListingCategory.SERVICES, price_in_cents=4900)

    checkout = client.post(f"{API}/local-listings/{draft.id}/checkout", headers=auth(owner))
    assert checkout.status_code == 200
    session_id = checkout.json()["session_id"]

    hook = {"listing_id": str(draft.id), "session_id": session_id}
    headers = {"X-Webhook-Secret": "test-webhook-secret"}

    first = client.post(f"{API}/payments/webhook", json=hook, headers=headers)
    assert first.status_code == 200
    assert first.json()["changed"] is True
    assert first.json()["listing"]["status"] == "ACTIVE"

    second = client.post(f"{API}/payments/webhook", json=hook, headers=headers)
    assert second.json()["changed"] is False
    assert second.json()["listing"]["expires_at"] == first.json()["listing"]["expires_at"]


def test_webhook_requires_secret(client, make_user, make_listing):
    draft = make_listing(make_user(), category=ListingCategory.SERVICES)
    response = client.post(
        f"{API}/payments/webhook",
        json={"listing_id": str(draft.id)},
        headers={"X-Webhook-Secret": "wrong"},
    )
    assert response.status_code == 401


def test_cron_expires_listings(client, db, make_user, make_listing):
    listing = make_listing(make_user())
    listing.expires_at = utcnow() - timedelta(hours=1)
    db.commit()

    assert client.post(f"{API}/cron/expire-local-listings").status_code == 401

    headers = {"Authorization": "Bearer test-cron-secret"}
    stats = client.get(f"{API}/cron/expire-local-listings", headers=headers).json()
    assert stats["pending_expiration"] == 1

    run = client.post(f"{API}/cron/expire-local-listings", headers=headers).json()
    assert run["success"] is True
    assert run["expired_count"] == 1

    db.expire_all()
    assert db.get(LocalListing, listing.id).status == ListingStatus.EXPIRED


def test_rating_listing_owner(client, make_user, make_listing, auth):
    owner, rater = make_user(), make_user()
    listing = make_listing(owner)

    response = client.post(
        f"{API}/local-listings/{listing.id}/rating", json={"rating": 5}, headers=auth(owner)
    )
    assert response.status_code == 403

    client.post(f"{API}/local-listings/{listing.id}/rating", json={"rating": 2}, headers=auth(rater))
    client.post(f"{API}/local-listings/{listing.id}/rating", json={"rating": 4}, headers=auth(rater))

    detail = client.get(f"{API}/local-listings/{listing.id}").json()
    assert detail["user_rating"] == {"average": 4.0, "count": 1}

    mine = client.get(f"{API}/local-listings/{listing.id}/rating", headers=auth(rater)).json()
    assert mine["rating"]["rating"] == 4


def test_locations_lists_active_slugs(client, make_user, make_listing):
    make_listing(make_user(city="Austin", state="TX"))
    make_listing(make_user(city="Denver", state="CO"))
    make_listing(make_user(city="Denver", state="CO"), category=ListingCategory.SERVICES)

    assert client.get(f"{API}/local-listings/locations").json() == ["austin-tx", "denver-co"]


def test_admin_routes_need_admin(client, make_user, auth):
    user = make_user()
    assert client.get(f"{API}/admin/local-listings/", headers=auth(user)).status_code == 403
    admin = make_user(role="admin")
    assert client.get(f"{API}/admin/local-listings/", headers=auth(admin)).status_code == 200


def test_openapi_documents_error_body(client):
    schema = client.get("/openapi.json").json()
    assert schema["components"]["schemas"]["ErrorResponse"]["required"] == ["detail"]

    detail = schema["paths"][f"{API}/local-listings/{{id_or_slug}}"]["get"]["responses"]
    assert detail["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
