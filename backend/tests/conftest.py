import os

# Settings are read at import time; point them at SQLite before nestlink loads
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REALTIME_ENABLED", "false")

import pytest
import uuid
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from nestlink.main import app
from nestlink.core.auth import AuthService
from nestlink.core.database import Base, get_db
from nestlink.core.realtime import get_notification_publisher
from nestlink.db.models import User, Profile, Property

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class RecordingPublisher:
    """Stands in for the Redis publisher and keeps what it was given"""

    def __init__(self):
        self.published = []

    def publish(self, notification):
        self.published.append(notification)
        return True


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return engine


@pytest.fixture(scope="function")
def test_db_session(test_engine):
    """Create a test database session"""
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def override_get_db(test_db_session):
    """Override the get_db dependency for testing"""
    def _override_get_db():
        try:
            yield test_db_session
        finally:
            pass
    return _override_get_db


@pytest.fixture(scope="function")
def publisher():
    return RecordingPublisher()


@pytest.fixture(scope="function")
def client(override_get_db, publisher):
    """Test client wired to the in-memory database and the recording publisher"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_publisher] = lambda: publisher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_profile(test_db_session):
    """Factory inserting a user with its profile; skips password hashing"""
    def _make_profile(name="Alice", badge="seeker", location="Paris", listing_preference=None):
        user = User(
            id=uuid.uuid4(),
            email=f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:8]}@example.com",
            hashed_password="not-a-real-hash",
            is_active=True,
            created_at=datetime.utcnow()
        )
        profile = Profile(
            id=uuid.uuid4(),
            user_id=user.id,
            name=name,
            email=user.email,
            badge=badge,
            location=location,
            listing_preference=listing_preference,
            created_at=datetime.utcnow()
        )
        test_db_session.add(user)
        test_db_session.add(profile)
        test_db_session.commit()
        return profile
    return _make_profile


@pytest.fixture(scope="function")
def make_property(test_db_session):
    """Factory inserting a listing owned by the given profile"""
    def _make_property(owner, title="Sunny flat", price=1200.0, type="rent", location="Paris", area=55.0):
        prop = Property(
            id=uuid.uuid4(),
            owner_id=owner.id,
            title=title,
            description="",
            price=price,
            type=type,
            location=location,
            bedrooms=2,
            bathrooms=1,
            area=area,
            images=[],
            features=[],
            created_at=datetime.utcnow()
        )
        test_db_session.add(prop)
        test_db_session.commit()
        return prop
    return _make_property


def auth_headers(profile) -> dict:
    token = AuthService.create_access_token(data={"sub": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}


def miss_first_lookup(monkeypatch, service_class, method_name):
    """Make a row lookup return None once, as when a concurrent insert is not yet visible"""
    original = getattr(service_class, method_name)
    calls = []

    def lookup(self, *args):
        calls.append(args)
        if len(calls) == 1:
            return None
        return original(self, *args)

    monkeypatch.setattr(service_class, method_name, lookup)
    return calls
