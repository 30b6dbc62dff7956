import os

# Must be set before anything imports app.core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["EXPIRY_SWEEP_SECONDS"] = "0"

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.local_listing import ListingCategory
from app.models.user import User
from app.schemas.local_listing import LocalListingCreate
from app.services import listings
from app.utils.slug import generate_location_slug

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db):
    return TestingSessionLocal


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: the lifespan would try to bootstrap PostgreSQL
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(handle=None, role="user", city="Austin", state="TX"):
        handle = handle or f"user-{uuid.uuid4().hex[:8]}"
        user = User(
            email=f"{handle}@example.com",
            handle=handle,
            password_hash="not-a-real-hash",
            full_name=handle.title(),
            role=role,
            city=city,
            state=state,
            location_slug=generate_location_slug(city, state) if city and state else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_listing(db):
    def _make(user, category=ListingCategory.COMMUNITY, title="Garden swap", **fields):
        data = LocalListingCreate(
            title=title,
            description=fields.pop("description", "Bring seeds, take seeds"),
            category=category,
            **fields,
        )
        return listings.create_listing(db, user, data)

    return _make


@pytest.fixture
def auth():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers
