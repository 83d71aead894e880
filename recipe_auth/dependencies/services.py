"""
Service wiring dependencies.

Everything is built from objects the app factory placed on ``app.state``,
so a test can swap the settings, database or HTTP client by building its
own app.
"""

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_auth.core.config import Settings
from recipe_auth.core.errors import ServiceUnavailableError
from recipe_auth.core.security import TokenIssuer
from recipe_auth.db.session import get_db
from recipe_auth.repositories.user_repository import UserRepository
from recipe_auth.services.auth_service import AuthService
from recipe_auth.services.google_oauth_service import GoogleOAuthService
from recipe_auth.services.user_service import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_auth_service(
    repository: UserRepository = Depends(get_user_repository),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(repository, token_issuer, bcrypt_rounds=settings.bcrypt_rounds)


def get_user_service(
    repository: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
) -> UserService:
    return UserService(repository, bcrypt_rounds=settings.bcrypt_rounds)


def get_google_oauth_service(
    repository: UserRepository = Depends(get_user_repository),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_app_settings),
) -> GoogleOAuthService:
    """
    Build the Google sign-in service.

    Raises:
        ServiceUnavailableError: If GOOGLE_CLIENT_ID is not configured.
    """
    if not settings.google_oauth_enabled:
        raise ServiceUnavailableError("Google OAuth is not configured")

    return GoogleOAuthService(
        repository,
        client_id=settings.google_client_id,
        http_client=http_client,
        tokeninfo_url=settings.google_tokeninfo_url,
    )
