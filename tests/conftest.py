import time
import uuid
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from recipe_auth.core.config import Settings
from recipe_auth.core.errors import DuplicateUserError
from recipe_auth.core.security import TokenIssuer
from recipe_auth.main import create_app
from recipe_auth.models.preferences import UserPreferences
from recipe_auth.models.user import User

# Test secret - only used in tests
TEST_SECRET = "test-secret-key-for-testing-only"
TEST_CLIENT_ID = "test-client-id.apps.googleusercontent.com"
TEST_TOKENINFO_URL = "https://oauth2.googleapis.test/tokeninfo"


class FakeUserRepository:
    """In-memory stand-in for UserRepository with the same uniqueness rules."""

    def __init__(self):
        self.users = {}
        self.preferences = {}
        self.writes = 0

    async def find_by_id(self, user_id):
        return self.users.get(str(user_id))

    async def find_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_google_id(self, google_id):
        return next((u for u in self.users.values() if u.google_id == google_id), None)

    def _check_unique(self, user_id, fields):
        for other in self.users.values():
            if str(other.id) == user_id:
                continue
            if "email" in fields and other.email == fields["email"]:
                raise DuplicateUserError("email")
            if fields.get("google_id") and other.google_id == fields["google_id"]:
                raise DuplicateUserError("google_id")

    async def create(self, **fields):
        user_id = uuid.uuid4()
        self._check_unique(str(user_id), fields)
        now = datetime.now(timezone.utc)
        user = User(id=user_id, created_at=now, updated_at=now, **fields)
        self.users[str(user_id)] = user
        self.writes += 1
        return user

    async def update(self, user, **fields):
        self._check_unique(str(user.id), fields)
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = datetime.now(timezone.utc)
        self.writes += 1
        return user

    async def find_preferences(self, user_id):
        return self.preferences.get(str(user_id))

    async def upsert_preferences(self, user_id, **fields):
        now = datetime.now(timezone.utc)
        preferences = self.preferences.get(str(user_id))
        if preferences is None:
            preferences = UserPreferences(
                id=uuid.uuid4(), user_id=uuid.UUID(str(user_id)), created_at=now, **fields
            )
            self.preferences[str(user_id)] = preferences
        else:
            for key, value in fields.items():
                setattr(preferences, key, value)
        preferences.updated_at = now
        self.writes += 1
        return preferences


@pytest.fixture
def repository() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment, with a fast bcrypt cost."""
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        database_url="sqlite+aiosqlite:///:memory:",
        google_client_id=TEST_CLIENT_ID,
        google_tokeninfo_url=TEST_TOKENINFO_URL,
    )


@pytest.fixture
def make_google_payload():
    """Build a tokeninfo response body that passes every check by default."""

    def _make(sub="google-sub-1", email="cook@kitchen.io", **overrides):
        payload = {
            "iss": "https://accounts.google.com",
            "aud": TEST_CLIENT_ID,
            "sub": sub,
            "email": email,
            "email_verified": "true",
            "exp": str(int(time.time()) + 3600),
            "name": "Home Cook",
            "picture": "https://lh3.googleusercontent.test/photo.jpg",
        }
        payload.update(overrides)
        return {k: v for k, v in payload.items() if v is not None}

    return _make


@pytest.fixture
def google_tokens() -> dict:
    """Map of ID token string -> tokeninfo body served by the fake Google."""
    return {}


@pytest.fixture
def google_requests() -> list:
    return []


@pytest.fixture
def google_http_client(google_tokens, google_requests) -> httpx.AsyncClient:
    """HTTP client whose tokeninfo calls are answered from google_tokens."""

    def handler(request: httpx.Request) -> httpx.Response:
        google_requests.append(request)
        payload = google_tokens.get(request.url.params.get("id_token"))
        if payload is None:
            return httpx.Response(400, json={"error": "invalid_token"})
        return httpx.Response(200, json=payload)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def app(settings, google_http_client):
    return create_app(settings, http_client=google_http_client)


@pytest.fixture
def client(app) -> TestClient:
    """FastAPI test client backed by an in-memory SQLite database."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register_user(client):
    """Register a user through the API and return the response body."""

    def _register(name="Ana", email="ana@x.com", password="secret1"):
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def bearer():
    return auth_header


@pytest.fixture
def preferences_body() -> dict:
    """A complete, valid preferences update body."""
    return {
        "dietaryRestrictions": ["vegetarian"],
        "allergies": ["peanuts"],
        "favoriteCuisines": ["italian", "thai"],
        "dislikedCuisines": [],
        "cookingSkillLevel": "intermediate",
        "preferredMealTypes": ["dinner"],
        "maxCookingTime": 45,
        "servingSize": 2,
        "emailNotifications": True,
        "pushNotifications": False,
        "weeklyRecipeEmails": True,
        "recipeRecommendations": True,
        "units": "metric",
        "language": "en",
        "theme": "dark",
    }
