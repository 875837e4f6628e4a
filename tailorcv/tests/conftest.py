"""
Pytest fixtures for TailorCV API tests.
Uses in-memory SQLite, mocks Redis, provides an authenticated user and fake model clients.
"""

import os

import pytest
from unittest.mock import AsyncMock, patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Use in-memory SQLite for tests - set before config/session load
# Must override any .env DATABASE_URL
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["OPENAI_API_KEY"] = ""
os.environ["AWS_ACCESS_KEY_ID"] = ""
os.environ["AWS_SECRET_ACCESS_KEY"] = ""
os.environ["REDIS_URL"] = ""

from tailorcv.app.db.base import Base
from tailorcv.main import app
from tailorcv.app.core.dependencies import get_db
from tailorcv.app.core.security import create_access_token
from tailorcv.app.services import job_description_store
from tailorcv.tests.helpers import CV_LINES, FakeLLM, make_image, make_pdf

# In-memory SQLite for tests - StaticPool ensures all sessions share same DB
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Patch the session module so app uses our test engine
import tailorcv.app.db.session as session_module
session_module.engine = engine
session_module.SessionLocal = TestingSessionLocal
# main.py imports engine directly; patch so startup uses our engine
import tailorcv.main as main_module
main_module.engine = engine

USER_ID = "user_test_1"
OTHER_USER_ID = "user_test_2"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def db_session():
    """Create tables and a fresh DB session per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def auth_headers(user_id):
    """Bearer token for the test user, as the identity provider would issue it."""
    token = create_access_token(data={"sub": user_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers():
    token = create_access_token(data={"sub": OTHER_USER_ID})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db_session):
    """TestClient with a fresh DB."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def mock_redis():
    """Mock Redis cache: get returns None (cache miss), set/delete no-op. Skip connect."""
    with patch("tailorcv.app.utils.cache.get", new_callable=AsyncMock, return_value=None), \
         patch("tailorcv.app.utils.cache.set", new_callable=AsyncMock), \
         patch("tailorcv.app.utils.cache.delete", new_callable=AsyncMock), \
         patch("tailorcv.app.utils.cache.connect", new_callable=AsyncMock):
        yield


@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    """Local-disk blob storage under a per-test directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def clear_drafts():
    job_description_store._store.clear()
    yield
    job_description_store._store.clear()


@pytest.fixture
def cv_pdf():
    return make_pdf(CV_LINES)


@pytest.fixture
def photo_png():
    return make_image("PNG")


@pytest.fixture
def fake_llm():
    return FakeLLM()
