"""Pytest configuration and fixtures for Fitsoul tests."""

import os
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Set test environment before importing app modules
os.environ["FIREBASE_API_KEY"] = "test-api-key"
os.environ["GOOGLE_WEB_CLIENT_ID"] = "test-client.apps.googleusercontent.com"
os.environ["MONGODB_DATABASE"] = "fitsoul_test"

from fitsoul.main import create_app
from fitsoul.services.auth import AuthService
from fitsoul.services.google_sign_in import GoogleSignInHelper
from fitsoul.services.session import SessionCoordinator
from fitsoul.services.users import UserStore
from tests.fakes import FakeFirebaseAuth


@pytest.fixture
def firebase_auth() -> FakeFirebaseAuth:
    """Fake Firebase client with no session."""
    return FakeFirebaseAuth()


@pytest.fixture
def users_collection() -> MagicMock:
    """Mocked motor users collection."""
    collection = MagicMock()
    collection.update_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    return collection


@pytest.fixture
def user_store(users_collection: MagicMock) -> UserStore:
    """User store backed by the mocked collection."""
    db = MagicMock()
    db.users = users_collection
    return UserStore(db)


@pytest.fixture
def auth_service(firebase_auth: FakeFirebaseAuth, user_store: UserStore) -> AuthService:
    """Create auth service for testing."""
    return AuthService(firebase_auth, user_store)


@pytest.fixture
def google_sign_in() -> GoogleSignInHelper:
    """Uninitialized Google Sign-In helper."""
    return GoogleSignInHelper()


@pytest_asyncio.fixture
async def coordinator(
    auth_service: AuthService,
    firebase_auth: FakeFirebaseAuth,
    google_sign_in: GoogleSignInHelper,
) -> AsyncGenerator[SessionCoordinator, None]:
    """Session coordinator that has processed the initial session emission."""
    session = SessionCoordinator(auth_service, firebase_auth, google_sign_in)
    await session.wait_until_idle()

    yield session

    session.dispose()
    await session.wait_until_idle()


@pytest_asyncio.fixture
async def client(coordinator: SessionCoordinator) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()
    app.state.coordinator = coordinator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
