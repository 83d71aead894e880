"""
Error taxonomy for the authentication service.

Service-level failures derive from AuthError and carry the HTTP status they
are rendered with; the app factory turns them into
``{"success": false, "message": ...}`` payloads.
"""

from typing import Any, Dict


class AuthError(Exception):
    """Base exception for failures reported back to the client."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API error payload."""
        return {"success": False, "message": self.message}


class ValidationError(AuthError):
    """Missing or malformed input."""

    status_code = 400


class InvalidCredentials(AuthError):
    """Unknown email, wrong password or password-less account.

    Always raised with the same message so callers cannot tell which
    check failed.
    """

    status_code = 400


class InvalidExternalToken(AuthError):
    """Google ID token rejected by any of the verification checks."""

    status_code = 400


class Unauthenticated(AuthError):
    """Missing, malformed or expired bearer token."""

    status_code = 401


class NotFoundError(AuthError):
    status_code = 404


class ServiceUnavailableError(AuthError):
    """A feature is switched off by configuration."""

    status_code = 503


class TokenError(Exception):
    """Base class for session token verification failures."""


class InvalidTokenError(TokenError):
    """Bad signature, malformed token or missing claims."""


class TokenExpiredError(TokenError):
    """Valid signature but the expiry time has passed."""


class ConfigurationError(Exception):
    """Required configuration is missing; the process cannot serve requests."""


class DuplicateUserError(Exception):
    """The store rejected a write because of a uniqueness constraint."""
