
import uuid
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.sql import func

from recipe_auth.db.base import Base


class UserPreferences(Base):
    """Cooking, notification and display preferences, one row per user."""

    __tablename__ = "user_preferences"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    dietary_restrictions = Column(JSON, nullable=False, default=list)
    allergies = Column(JSON, nullable=False, default=list)
    favorite_cuisines = Column(JSON, nullable=False, default=list)
    disliked_cuisines = Column(JSON, nullable=False, default=list)
    cooking_skill_level = Column(String(20), nullable=False, default="beginner")
    preferred_meal_types = Column(JSON, nullable=False, default=list)
    max_cooking_time = Column(Integer, nullable=False, default=60)
    serving_size = Column(Integer, nullable=False, default=2)
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    weekly_recipe_emails = Column(Boolean, nullable=False, default=False)
    recipe_recommendations = Column(Boolean, nullable=False, default=True)
    units = Column(String(10), nullable=False, default="metric")
    language = Column(String(5), nullable=False, default="en")
    theme = Column(String(10), nullable=False, default="system")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
