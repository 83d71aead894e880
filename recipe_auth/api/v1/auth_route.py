"""
Authentication endpoints.

Handles password registration and login, Google sign-in, and profile and
preferences maintenance for the authenticated user.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status

from recipe_auth.core.errors import ValidationError
from recipe_auth.dependencies.auth import get_current_user
from recipe_auth.dependencies.services import (
    get_auth_service,
    get_google_oauth_service,
    get_user_service,
)
from recipe_auth.schemas.auth import (
    CurrentUser,
    GoogleCallbackRequest,
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)
from recipe_auth.schemas.preferences import PreferencesEnvelope, PreferencesResponse
from recipe_auth.schemas.user import (
    AuthResponse,
    GoogleAuthResponse,
    MessageResponse,
    UserEnvelope,
    UserResponse,
)
from recipe_auth.services.auth_service import AuthService
from recipe_auth.services.google_oauth_service import GoogleOAuthService
from recipe_auth.services.user_service import UserService


logger = logging.getLogger(__name__)

auth_router = APIRouter()


@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: Optional[RegisterRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register a new password-based account.

    Returns:
        AuthResponse: The created user and a session token.
    """
    body = body or RegisterRequest()
    user, token = await auth_service.register(body.name, body.email, body.password)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        token=token,
    )


@auth_router.post("/login", response_model=AuthResponse)
async def login(
    body: Optional[LoginRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Log in with email and password.

    Returns:
        AuthResponse: The user and a session token.
    """
    body = body or LoginRequest()
    user, token = await auth_service.login(body.email, body.password)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )


@auth_router.post("/google/callback", response_model=GoogleAuthResponse)
async def google_callback(
    body: Optional[GoogleCallbackRequest] = None,
    google_service: GoogleOAuthService = Depends(get_google_oauth_service),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Sign in with a Google ID token obtained by the frontend.

    Creates the account on first sign-in, or links the Google identity onto
    an existing account with the same email.

    Returns:
        GoogleAuthResponse: The user, a session token and whether the
            account was just created.
    """
    body = body or GoogleCallbackRequest()
    if not body.id_token:
        raise ValidationError("Google ID token is required")

    user, is_new_user = await google_service.authenticate_with_google(body.id_token)
    return GoogleAuthResponse(
        message="Google authentication successful",
        user=UserResponse.model_validate(user),
        token=auth_service.issue_token(user),
        is_new_user=is_new_user,
    )


@auth_router.get("/me", response_model=UserEnvelope)
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    user = await auth_service.get_current_user(current_user.id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@auth_router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    body: Optional[ProfileUpdateRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """
    Update name and email of the authenticated user.

    Tokens already issued keep the old claims until they are reissued.
    """
    body = body or ProfileUpdateRequest()
    user = await user_service.update_profile(current_user.id, body.name, body.email)
    return UserEnvelope(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@auth_router.put("/password", response_model=MessageResponse)
async def change_password(
    body: Optional[PasswordChangeRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    body = body or PasswordChangeRequest()
    await user_service.change_password(
        current_user.id, body.current_password, body.new_password
    )
    return MessageResponse(message="Password changed successfully")


@auth_router.delete("/avatar", response_model=UserEnvelope)
async def remove_avatar(
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.remove_avatar(current_user.id)
    return UserEnvelope(
        message="Avatar removed successfully",
        user=UserResponse.model_validate(user),
    )


@auth_router.get("/preferences", response_model=PreferencesEnvelope)
async def get_preferences(
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    preferences = await user_service.get_preferences(current_user.id)
    return PreferencesEnvelope(
        preferences=PreferencesResponse.model_validate(preferences) if preferences else None
    )


@auth_router.put("/preferences", response_model=PreferencesEnvelope)
async def update_preferences(
    body: Optional[Dict[str, Any]] = Body(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """
    Replace the authenticated user's preferences.

    The body must carry every preference field; the first missing one is
    reported as "Missing required field: <name>".
    """
    preferences = await user_service.update_preferences(current_user.id, body or {})
    return PreferencesEnvelope(
        message="Preferences updated successfully",
        preferences=PreferencesResponse.model_validate(preferences),
    )
