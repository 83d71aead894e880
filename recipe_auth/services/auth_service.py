
import logging
from typing import Optional, Tuple

from recipe_auth.core.errors import (
    DuplicateUserError,
    InvalidCredentials,
    NotFoundError,
    ValidationError,
)
from recipe_auth.core.security import DEFAULT_BCRYPT_ROUNDS, TokenIssuer, hash_password, verify_password
from recipe_auth.models.user import User
from recipe_auth.repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
USER_EXISTS_MESSAGE = "User with this email already exists"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Service class for password registration and login."""

    def __init__(
        self,
        repository: UserRepository,
        token_issuer: TokenIssuer,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
    ):
        self.repository = repository
        self.token_issuer = token_issuer
        self.bcrypt_rounds = bcrypt_rounds

    def issue_token(self, user: User) -> str:
        """Mint a session token for a persisted user."""
        return self.token_issuer.issue(str(user.id), user.email, user.name)

    async def register(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> Tuple[User, str]:
        """
        Register a new password-based account.

        Args:
            name: Display name.
            email: Email address, stored lowercased.
            password: Plain password, at least 6 characters.

        Returns:
            tuple: (created User, session token)

        Raises:
            ValidationError: If a field is missing, the password is too short
                or the email is already registered.
        """
        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        email = normalize_email(email)
        if await self.repository.find_by_email(email):
            raise ValidationError(USER_EXISTS_MESSAGE)

        try:
            user = await self.repository.create(
                name=name,
                email=email,
                password_hash=hash_password(password, self.bcrypt_rounds),
            )
        except DuplicateUserError:
            # Lost a race with a concurrent registration for the same email
            raise ValidationError(USER_EXISTS_MESSAGE)

        logger.info(f"Registered new user: {user.id}")
        return user, self.issue_token(user)

    async def login(self, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """
        Authenticate a password-based account.

        Unknown email, an account without a password and a wrong password
        all fail with the same message.

        Returns:
            tuple: (User, session token)

        Raises:
            ValidationError: If email or password is missing.
            InvalidCredentials: If the credentials do not match an account.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await self.repository.find_by_email(normalize_email(email))

        if not user or not user.has_password or not verify_password(password, user.password_hash):
            logger.info("Rejected login attempt")
            raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

        logger.info(f"User logged in: {user.id}")
        return user, self.issue_token(user)

    async def get_current_user(self, user_id: str) -> User:
        """
        Load the full user row behind an authenticated request.

        Raises:
            NotFoundError: If the user no longer exists.
        """
        user = await self.repository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
