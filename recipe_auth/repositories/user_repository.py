"""
User persistence.

The single gateway to the users and user_preferences tables. Services
receive an instance per request instead of opening sessions themselves.
"""

import logging
from typing import Any, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from recipe_auth.core.errors import DuplicateUserError
from recipe_auth.models.preferences import UserPreferences
from recipe_auth.models.user import User


logger = logging.getLogger(__name__)


def _as_uuid(value: Union[str, UUID]) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class UserRepository:
    """Repository for User and UserPreferences rows backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: Union[str, UUID]) -> Optional[User]:
        """
        Find a user by primary key.

        Args:
            user_id: User id as UUID or its string form.

        Returns:
            Optional[User]: The user, or None if absent or the id is malformed.
        """
        user_id = _as_uuid(user_id)
        if user_id is None:
            return None
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    async def find_by_email(self, email: str) -> Optional[User]:
        """Find a user by (already normalized) email."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def find_by_google_id(self, google_id: str) -> Optional[User]:
        """Find the user linked to a Google subject id."""
        result = await self.db.execute(select(User).where(User.google_id == google_id))
        return result.scalars().first()

    async def create(self, **fields: Any) -> User:
        """
        Insert a new user row.

        Returns:
            User: The persisted user with server defaults loaded.

        Raises:
            DuplicateUserError: If email or google_id is already taken.
        """
        user = User(**fields)
        self.db.add(user)
        await self._commit()
        await self.db.refresh(user)
        return user

    async def update(self, user: User, **fields: Any) -> User:
        """
        Apply field changes to an existing user row.

        Raises:
            DuplicateUserError: If the change collides with another row.
        """
        for key, value in fields.items():
            setattr(user, key, value)
        await self._commit()
        await self.db.refresh(user)
        return user

    async def find_preferences(self, user_id: Union[str, UUID]) -> Optional[UserPreferences]:
        """Find the preferences row owned by a user, if one was ever saved."""
        user_id = _as_uuid(user_id)
        if user_id is None:
            return None
        result = await self.db.execute(
            select(UserPreferences).where(UserPreferences.user_id == user_id)
        )
        return result.scalars().first()

    async def upsert_preferences(self, user_id: Union[str, UUID], **fields: Any) -> UserPreferences:
        """
        Create the user's preferences row or overwrite the existing one.

        Args:
            user_id: Owner of the preferences.
            **fields: Column values to store.

        Returns:
            UserPreferences: The persisted row.
        """
        preferences = await self.find_preferences(user_id)
        if preferences is None:
            preferences = UserPreferences(user_id=_as_uuid(user_id), **fields)
            self.db.add(preferences)
        else:
            for key, value in fields.items():
                setattr(preferences, key, value)
        await self._commit()
        await self.db.refresh(preferences)
        return preferences

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Uniqueness conflict: {e.orig}")
            raise DuplicateUserError(str(e.orig)) from e
