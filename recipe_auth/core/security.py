
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from recipe_auth.core.config import Settings
from recipe_auth.core.errors import ConfigurationError, InvalidTokenError, TokenExpiredError
from recipe_auth.schemas.auth import TokenClaims
from recipe_auth.utils.expiry import parse_lifetime, validate_lifetime_format


DEFAULT_BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

logger = logging.getLogger(__name__)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash a password with a fresh bcrypt salt.

    Args:
        password: The plain password.
        rounds: bcrypt cost factor.

    Returns:
        str: The encoded bcrypt hash.
    """
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its bcrypt hash using constant-time comparison.

    Args:
        password: The plain password.
        password_hash: The stored hash.

    Returns:
        bool: True if the password matches the hash.
    """
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Failed to verify password hash: {e}")
        return False


class TokenIssuer:
    """Mints and verifies the signed, time-limited session tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", lifetime: timedelta = timedelta(days=7)):
        if not secret:
            raise ConfigurationError("JWT_SECRET is not defined")
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        """
        Build the issuer from application settings.

        Raises:
            ConfigurationError: If the signing secret is missing or the
                lifetime string cannot be parsed.
        """
        if not settings.jwt_secret:
            raise ConfigurationError("JWT_SECRET is not defined")
        if not validate_lifetime_format(settings.jwt_expires_in):
            raise ConfigurationError(f"Invalid JWT_EXPIRES_IN value: {settings.jwt_expires_in!r}")
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            lifetime=parse_lifetime(settings.jwt_expires_in),
        )

    def issue(self, user_id: str, email: str, name: Optional[str] = None) -> str:
        """
        Create a session token for a user.

        Args:
            user_id: Id of the authenticated user.
            email: The user's email, embedded for downstream handlers.
            name: Display name, embedded so the request gate needs no lookup.

        Returns:
            str: Encoded JWT token.
        """
        now = datetime.now(timezone.utc)
        to_encode = {
            "id": str(user_id),
            "email": email,
            "name": name,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify and decode a session token.

        Args:
            token: JWT token to verify.

        Returns:
            TokenClaims: Decoded token payload.

        Raises:
            TokenExpiredError: Signature is valid but the token has expired.
            InvalidTokenError: Signature, format or claims are invalid.
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token expired") from e
        except JWTError as e:
            raise InvalidTokenError("Invalid token") from e

        if not payload.get("id") or not payload.get("email") or "exp" not in payload:
            raise InvalidTokenError("Token is missing required claims")

        try:
            return TokenClaims(
                id=payload["id"],
                email=payload["email"],
                name=payload.get("name"),
                exp=payload["exp"],
            )
        except PydanticValidationError as e:
            raise InvalidTokenError("Token claims have the wrong types") from e
