"""
Test configuration and fixtures for the link shortener.
This centralizes all test setup, making individual tests clean.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from links_app.auth.strategies import JWTIdentityProvider
from links_app.database.connection import Base, get_db, get_session_factory
from links_app.dependencies import get_identity_provider
from links_app.schemas.link import LinkCreate
from links_app.services.link_service import LinkService
from links_app.store.link_store import LinkStore

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

identity_provider = JWTIdentityProvider(secret_key="test-secret")

ALICE = "user_alice"
BOB = "user_bob"


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Test client with the database, the background session factory and the
    identity provider overridden.

    Each request gets its own session, like in production, so reads after a
    background click increment see the new count.
    """
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {identity_provider.create_token(user_id)}"}


@pytest.fixture
def alice_headers():
    return bearer(ALICE)


@pytest.fixture
def bob_headers():
    return bearer(BOB)


@pytest.fixture
def store(db_session):
    return LinkStore(db_session)


@pytest.fixture
def link_service(store):
    return LinkService(store)


@pytest.fixture
def make_link(link_service):
    """Create a link for ALICE (or another owner) through the service."""
    def _make(short_code="mylink", original_url="https://example.com", owner=ALICE, **extra):
        data = LinkCreate(short_code=short_code, original_url=original_url, **extra)
        return link_service.create_link(owner, data)
    return _make


@pytest.fixture
def session_factory(db_session):
    """Factory for work that runs outside the test's own session."""
    return TestingSessionLocal
