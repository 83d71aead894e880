
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from recipe_auth.core.errors import ConfigurationError, DuplicateUserError, InvalidExternalToken
from recipe_auth.models.user import User
from recipe_auth.repositories.user_repository import UserRepository
from recipe_auth.services.auth_service import normalize_email


logger = logging.getLogger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"

ACCOUNT_CONFLICT_MESSAGE = "Google account could not be linked, please try again"


@dataclass
class GoogleIdentity:
    """Claims extracted from a verified Google ID token."""

    sub: str
    email: str
    name: str
    picture: Optional[str] = None


def _is_true(value) -> bool:
    # tokeninfo serializes booleans as strings
    return value is True or (isinstance(value, str) and value.lower() == "true")


class GoogleOAuthService:
    """Service class for Google ID token sign-in and account linking."""

    def __init__(
        self,
        repository: UserRepository,
        client_id: Optional[str],
        http_client: httpx.AsyncClient,
        tokeninfo_url: str = GOOGLE_TOKENINFO_URL,
    ):
        if not client_id:
            raise ConfigurationError("GOOGLE_CLIENT_ID is not defined")
        self.repository = repository
        self.client_id = client_id
        self.http_client = http_client
        self.tokeninfo_url = tokeninfo_url

    async def verify_id_token(self, id_token: str) -> Optional[GoogleIdentity]:
        """
        Verify a Google ID token with Google's tokeninfo endpoint.

        Audience, email verification and expiry are all checked; any
        failure returns None.

        Args:
            id_token: Raw ID token from the client.

        Returns:
            Optional[GoogleIdentity]: Verified identity or None.
        """
        try:
            response = await self.http_client.get(self.tokeninfo_url, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.error(f"Error calling Google tokeninfo: {e}")
            return None

        if not response.is_success:
            logger.error(f"Failed to verify Google ID token: {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.error("Google tokeninfo returned a non-JSON body")
            return None
        if not isinstance(payload, dict):
            logger.error("Google tokeninfo returned an unexpected body")
            return None

        if payload.get("aud") != self.client_id:
            logger.error("Google ID token audience mismatch")
            return None

        if not _is_true(payload.get("email_verified")):
            logger.error("Google email is not verified")
            return None

        try:
            expires_at = int(payload["exp"])
        except (KeyError, TypeError, ValueError):
            logger.error("Google ID token has no usable expiry")
            return None
        if expires_at < int(time.time()):
            logger.error("Google ID token is expired")
            return None

        sub = payload.get("sub")
        email = payload.get("email")
        if not sub or not email:
            logger.error("Google ID token is missing subject or email")
            return None

        return GoogleIdentity(
            sub=str(sub),
            email=email,
            name=payload.get("name") or email,
            picture=payload.get("picture"),
        )

    async def authenticate_with_google(self, id_token: str) -> Tuple[User, bool]:
        """
        Resolve a Google ID token to a local user, creating or linking one.

        Resolution order: an account already linked to the Google subject,
        then a password account with the same email (linked in place, its
        avatar kept if it has one), then a brand new account.

        Args:
            id_token: Raw ID token from the client.

        Returns:
            tuple: (User, is_new_user)

        Raises:
            InvalidExternalToken: If the token fails verification or the
                email belongs to an account linked to another Google subject,
                or a concurrent write made the link or insert conflict.
        """
        identity = await self.verify_id_token(id_token)
        if not identity:
            raise InvalidExternalToken("Invalid Google ID token")

        user = await self.repository.find_by_google_id(identity.sub)
        if user:
            logger.info(f"Found existing Google user: {user.id}")
            return user, False

        email = normalize_email(identity.email)
        existing_user = await self.repository.find_by_email(email)

        if existing_user:
            if existing_user.google_id and existing_user.google_id != identity.sub:
                logger.warning(
                    f"Refused to relink user {existing_user.id} to a different Google account"
                )
                raise InvalidExternalToken("This email is linked to a different Google account")

            try:
                user = await self.repository.update(
                    existing_user,
                    google_id=identity.sub,
                    avatar_url=existing_user.avatar_url or identity.picture,
                )
            except DuplicateUserError:
                logger.warning(f"Store conflict while linking Google account to user {existing_user.id}")
                raise InvalidExternalToken(ACCOUNT_CONFLICT_MESSAGE)
            logger.info(f"Linked Google account to existing user by email: {user.id}")
            return user, False

        try:
            user = await self.repository.create(
                name=identity.name,
                email=email,
                google_id=identity.sub,
                avatar_url=identity.picture,
            )
        except DuplicateUserError:
            # A concurrent sign-in created the row first
            user = await self.repository.find_by_google_id(identity.sub)
            if not user:
                # The email was taken by a concurrent registration
                logger.warning("Store conflict while creating a user from Google sign-in")
                raise InvalidExternalToken(ACCOUNT_CONFLICT_MESSAGE)
            return user, False

        logger.info(f"Created new user from Google sign-in: {user.id}")
        return user, True
