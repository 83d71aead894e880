
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from recipe_auth.core.errors import DuplicateUserError, NotFoundError, ValidationError
from recipe_auth.core.security import DEFAULT_BCRYPT_ROUNDS, hash_password, verify_password
from recipe_auth.models.preferences import UserPreferences
from recipe_auth.models.user import User
from recipe_auth.repositories.user_repository import UserRepository
from recipe_auth.schemas.preferences import PREFERENCE_FIELDS, PreferencesUpdate
from recipe_auth.services.auth_service import MIN_PASSWORD_LENGTH, normalize_email


logger = logging.getLogger(__name__)


class UserService:
    """Profile and preferences maintenance for an authenticated user."""

    def __init__(self, repository: UserRepository, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.repository = repository
        self.bcrypt_rounds = bcrypt_rounds

    async def _get_user(self, user_id: str) -> User:
        user = await self.repository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: str, name: Optional[str], email: Optional[str]) -> User:
        """
        Update the user's name and email.

        Raises:
            ValidationError: If a field is missing or the email is taken.
            NotFoundError: If the user does not exist.
        """
        if not name or not email:
            raise ValidationError("Name and email are required")

        user = await self._get_user(user_id)
        try:
            user = await self.repository.update(user, name=name, email=normalize_email(email))
        except DuplicateUserError:
            raise ValidationError("Email address is already in use by another account")

        logger.info(f"Updated profile for user {user.id}")
        return user

    async def change_password(
        self,
        user_id: str,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        """
        Replace the user's password after checking the current one.

        Raises:
            ValidationError: If input is missing, the new password is too
                short, the account has no password or the current password
                does not match.
            NotFoundError: If the user does not exist.
        """
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")

        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        user = await self._get_user(user_id)
        if not user.has_password:
            raise ValidationError("Password login is not enabled for this account")

        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        await self.repository.update(
            user, password_hash=hash_password(new_password, self.bcrypt_rounds)
        )
        logger.info(f"Changed password for user {user.id}")

    async def remove_avatar(self, user_id: str) -> User:
        """Clear the user's avatar URL."""
        user = await self._get_user(user_id)
        user = await self.repository.update(user, avatar_url=None)
        logger.info(f"Removed avatar for user {user.id}")
        return user

    async def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        """
        Load the user's saved preferences.

        Returns:
            Optional[UserPreferences]: The stored row, or None if the user
                has never saved any.

        Raises:
            NotFoundError: If the user does not exist.
        """
        await self._get_user(user_id)
        return await self.repository.find_preferences(user_id)

    async def update_preferences(self, user_id: str, data: Dict[str, Any]) -> UserPreferences:
        """
        Replace the user's preferences, creating the row on first save.

        Every preference field must be present; they are checked in a fixed
        order so the first missing one is reported.

        Args:
            user_id: Id of the authenticated user.
            data: Raw request body keyed by camelCase field names.

        Returns:
            UserPreferences: The stored row.

        Raises:
            ValidationError: If a field is missing or has an invalid value.
            NotFoundError: If the user does not exist.
        """
        for field in PREFERENCE_FIELDS:
            if field not in data:
                raise ValidationError(f"Missing required field: {field}")

        try:
            update = PreferencesUpdate.model_validate(data)
        except PydanticValidationError as e:
            error = e.errors()[0]
            raise ValidationError(f"Invalid value for {error['loc'][0]}: {error['msg']}")

        await self._get_user(user_id)
        preferences = await self.repository.upsert_preferences(user_id, **update.model_dump())
        logger.info(f"Updated preferences for user {user_id}")
        return preferences
