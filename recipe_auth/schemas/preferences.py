
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PreferencesFields(BaseModel):
    """The preference values a client reads and writes, in camelCase on the wire."""

    dietary_restrictions: List[str] = Field(alias="dietaryRestrictions")
    allergies: List[str]
    favorite_cuisines: List[str] = Field(alias="favoriteCuisines")
    disliked_cuisines: List[str] = Field(alias="dislikedCuisines")
    cooking_skill_level: Literal["beginner", "intermediate", "advanced", "expert"] = Field(
        alias="cookingSkillLevel"
    )
    preferred_meal_types: List[str] = Field(alias="preferredMealTypes")
    max_cooking_time: int = Field(alias="maxCookingTime", gt=0)
    serving_size: int = Field(alias="servingSize", gt=0)
    email_notifications: bool = Field(alias="emailNotifications")
    push_notifications: bool = Field(alias="pushNotifications")
    weekly_recipe_emails: bool = Field(alias="weeklyRecipeEmails")
    recipe_recommendations: bool = Field(alias="recipeRecommendations")
    units: Literal["metric", "imperial"]
    language: Literal["en", "es", "fr"]
    theme: Literal["light", "dark", "system"]

    model_config = ConfigDict(populate_by_name=True)


class PreferencesUpdate(PreferencesFields):
    """Schema for a full preferences replacement."""


# Wire names every update must carry, in the order they are checked
PREFERENCE_FIELDS = tuple(field.alias or name for name, field in PreferencesUpdate.model_fields.items())


class PreferencesResponse(PreferencesFields):
    """Stored preferences returned to the client."""

    id: UUID
    user_id: UUID = Field(alias="userId")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PreferencesEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    preferences: Optional[PreferencesResponse] = None
