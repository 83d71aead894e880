"""Tests for Google ID token verification and account resolution."""

import asyncio
import time

import httpx
import pytest

from recipe_auth.core.errors import ConfigurationError, DuplicateUserError, InvalidExternalToken
from recipe_auth.services.google_oauth_service import ACCOUNT_CONFLICT_MESSAGE, GoogleOAuthService

from conftest import TEST_CLIENT_ID, TEST_TOKENINFO_URL


@pytest.fixture
def google_service(repository, google_http_client) -> GoogleOAuthService:
    return GoogleOAuthService(
        repository,
        client_id=TEST_CLIENT_ID,
        http_client=google_http_client,
        tokeninfo_url=TEST_TOKENINFO_URL,
    )


class TestVerifyIdToken:
    """Test GoogleOAuthService.verify_id_token."""

    def test_valid_token(self, google_service, google_tokens, google_requests, make_google_payload):
        """Test a valid token yields the identity claims."""
        google_tokens["good"] = make_google_payload()

        identity = asyncio.run(google_service.verify_id_token("good"))

        assert identity.sub == "google-sub-1"
        assert identity.email == "cook@kitchen.io"
        assert identity.name == "Home Cook"
        assert identity.picture.endswith("photo.jpg")
        assert google_requests[0].url.params["id_token"] == "good"
        assert str(google_requests[0].url).startswith(TEST_TOKENINFO_URL)

    def test_name_falls_back_to_email(self, google_service, google_tokens, make_google_payload):
        google_tokens["good"] = make_google_payload(name=None)
        identity = asyncio.run(google_service.verify_id_token("good"))
        assert identity.name == "cook@kitchen.io"

    def test_boolean_email_verified(self, google_service, google_tokens, make_google_payload):
        google_tokens["good"] = make_google_payload(email_verified=True)
        assert asyncio.run(google_service.verify_id_token("good")) is not None

    def test_audience_mismatch(self, google_service, google_tokens, make_google_payload):
        """Test a token for another client id is rejected despite valid claims."""
        google_tokens["other-aud"] = make_google_payload(aud="someone-else.apps.googleusercontent.com")
        assert asyncio.run(google_service.verify_id_token("other-aud")) is None

    @pytest.mark.parametrize("verified", ["false", False, None])
    def test_unverified_email(self, google_service, google_tokens, make_google_payload, verified):
        google_tokens["unverified"] = make_google_payload(email_verified=verified)
        assert asyncio.run(google_service.verify_id_token("unverified")) is None

    def test_expired(self, google_service, google_tokens, make_google_payload):
        google_tokens["old"] = make_google_payload(exp=str(int(time.time()) - 10))
        assert asyncio.run(google_service.verify_id_token("old")) is None

    def test_missing_expiry(self, google_service, google_tokens, make_google_payload):
        google_tokens["no-exp"] = make_google_payload(exp=None)
        assert asyncio.run(google_service.verify_id_token("no-exp")) is None

    def test_google_rejects_token(self, google_service):
        """Test a non-2xx tokeninfo response is a rejection."""
        assert asyncio.run(google_service.verify_id_token("unknown")) is None

    def test_network_error(self, repository):
        """Test a transport failure is a rejection, not an exception."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = GoogleOAuthService(
            repository,
            client_id=TEST_CLIENT_ID,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        assert asyncio.run(service.verify_id_token("anything")) is None

    def test_non_json_body(self, repository):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        service = GoogleOAuthService(
            repository,
            client_id=TEST_CLIENT_ID,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        assert asyncio.run(service.verify_id_token("anything")) is None

    def test_requires_client_id(self, repository, google_http_client):
        with pytest.raises(ConfigurationError):
            GoogleOAuthService(repository, client_id=None, http_client=google_http_client)


class TestAuthenticateWithGoogle:
    """Test GoogleOAuthService.authenticate_with_google."""

    def test_new_user(self, google_service, google_tokens, make_google_payload):
        """Test first sign-in creates a password-less account."""
        google_tokens["t1"] = make_google_payload(email="Cook@Kitchen.io")

        user, is_new_user = asyncio.run(google_service.authenticate_with_google("t1"))

        assert is_new_user is True
        assert user.email == "cook@kitchen.io"
        assert user.google_id == "google-sub-1"
        assert user.password_hash is None
        assert user.avatar_url.endswith("photo.jpg")

    def test_same_subject_is_idempotent(self, google_service, repository, google_tokens, make_google_payload):
        """Test two tokens for the same subject resolve to one user."""
        google_tokens["t1"] = make_google_payload()
        google_tokens["t2"] = make_google_payload(name="Renamed")

        first, first_new = asyncio.run(google_service.authenticate_with_google("t1"))
        second, second_new = asyncio.run(google_service.authenticate_with_google("t2"))

        assert first.id == second.id
        assert (first_new, second_new) == (True, False)
        assert len(repository.users) == 1

    def test_links_password_account(self, google_service, repository, google_tokens, make_google_payload):
        """Test a password account with the same email gets linked and keeps its avatar."""

        async def scenario():
            existing = await repository.create(
                name="Ana",
                email="cook@kitchen.io",
                password_hash="$2b$04$hash",
                avatar_url="https://cdn.recipes.io/ana.png",
            )
            google_tokens["t1"] = make_google_payload(email="COOK@kitchen.io")
            google_tokens["t2"] = make_google_payload()
            linked, linked_new = await google_service.authenticate_with_google("t1")
            again, again_new = await google_service.authenticate_with_google("t2")
            return existing, linked, linked_new, again, again_new

        existing, linked, linked_new, again, again_new = asyncio.run(scenario())

        assert linked.id == existing.id == again.id
        assert linked_new is False and again_new is False
        assert linked.google_id == "google-sub-1"
        assert linked.avatar_url == "https://cdn.recipes.io/ana.png"
        assert linked.password_hash == "$2b$04$hash"
        assert len(repository.users) == 1

    def test_link_backfills_missing_avatar(self, google_service, repository, google_tokens, make_google_payload):
        async def scenario():
            await repository.create(name="Ana", email="cook@kitchen.io", password_hash="$2b$04$hash")
            google_tokens["t1"] = make_google_payload()
            return await google_service.authenticate_with_google("t1")

        user, _ = asyncio.run(scenario())
        assert user.avatar_url.endswith("photo.jpg")

    def test_does_not_relink_other_subject(self, google_service, repository, google_tokens, make_google_payload):
        """Test an email already linked to another Google subject is not reassigned."""

        async def scenario():
            await repository.create(name="Ana", email="cook@kitchen.io", google_id="original-sub")
            google_tokens["t1"] = make_google_payload(sub="intruder-sub")
            await google_service.authenticate_with_google("t1")

        with pytest.raises(InvalidExternalToken):
            asyncio.run(scenario())
        assert asyncio.run(repository.find_by_google_id("original-sub")) is not None

    def test_invalid_token(self, google_service, repository):
        """Test a token that fails verification raises with one generic message."""
        with pytest.raises(InvalidExternalToken) as exc:
            asyncio.run(google_service.authenticate_with_google("forged"))
        assert exc.value.message == "Invalid Google ID token"
        assert repository.writes == 0

    def test_email_taken_during_create(self, google_service, repository, google_tokens, make_google_payload):
        """Test losing an insert race on the email reports a sign-in error."""

        async def scenario():
            await repository.create(name="Ana", email="cook@kitchen.io", password_hash="hash")

            # the email lookup ran before the competing registration committed
            async def find_nothing(email):
                return None

            repository.find_by_email = find_nothing
            google_tokens["t1"] = make_google_payload()
            await google_service.authenticate_with_google("t1")

        with pytest.raises(InvalidExternalToken) as exc:
            asyncio.run(scenario())
        assert exc.value.message == ACCOUNT_CONFLICT_MESSAGE
        assert exc.value.status_code == 400

    def test_subject_taken_during_create(self, google_service, repository, google_tokens, make_google_payload):
        """Test losing an insert race on the subject returns the winner's row."""

        async def scenario():
            winner = await repository.create(name="Home Cook", email="cook@kitchen.io", google_id="google-sub-1")
            lookups = []
            real_find = repository.find_by_google_id

            async def find_late(google_id):
                lookups.append(google_id)
                if len(lookups) == 1:
                    return None
                return await real_find(google_id)

            async def find_nothing(email):
                return None

            repository.find_by_google_id = find_late
            repository.find_by_email = find_nothing
            google_tokens["t1"] = make_google_payload()
            return winner, await google_service.authenticate_with_google("t1")

        winner, (user, is_new_user) = asyncio.run(scenario())
        assert user is winner
        assert is_new_user is False

    def test_link_conflict(self, google_service, repository, google_tokens, make_google_payload):
        """Test a uniqueness conflict while linking reports a sign-in error."""

        async def scenario():
            await repository.create(name="Ana", email="cook@kitchen.io", password_hash="hash")

            async def conflict(user, **fields):
                raise DuplicateUserError("google_id")

            repository.update = conflict
            google_tokens["t1"] = make_google_payload()
            await google_service.authenticate_with_google("t1")

        with pytest.raises(InvalidExternalToken) as exc:
            asyncio.run(scenario())
        assert exc.value.message == ACCOUNT_CONFLICT_MESSAGE
