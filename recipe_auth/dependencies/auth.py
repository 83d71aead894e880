
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from recipe_auth.core.errors import InvalidTokenError, TokenExpiredError
from recipe_auth.core.security import TokenIssuer
from recipe_auth.dependencies.services import get_token_issuer
from recipe_auth.schemas.auth import CurrentUser


logger = logging.getLogger(__name__)

# HTTPBearer with auto_error=False so we can handle missing tokens ourselves
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> CurrentUser:
    """
    Dependency to get current authenticated user from the bearer token.

    The identity comes from the token claims alone; the users table is not
    read. The result is also stored on ``request.state.user``.

    Args:
        request: Incoming request.
        credentials: Bearer token from Authorization header.
        token_issuer: Verifier for session tokens.

    Returns:
        CurrentUser: Identity of the caller.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired.
    """
    if not credentials:
        raise _unauthorized("Access denied. No token provided.")

    try:
        claims = token_issuer.verify(credentials.credentials)
    except TokenExpiredError:
        raise _unauthorized("Token expired.")
    except InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise _unauthorized("Invalid token.")

    current_user = CurrentUser(id=claims.id, email=claims.email, name=claims.name)
    request.state.user = current_user
    return current_user
