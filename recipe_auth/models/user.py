
import uuid
from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from recipe_auth.db.base import Base


class User(Base):
    """
    User model for password and Google authenticated accounts.

    A row carries a password hash, a Google subject id, or both once a
    Google sign-in has been linked onto a password account.
    """

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    google_id = Column(String(255), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def has_password(self) -> bool:
        """Check if the account can sign in with a password."""
        return bool(self.password_hash)
