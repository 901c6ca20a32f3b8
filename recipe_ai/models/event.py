"""Collaborative event Pydantic models."""

from typing import List, Optional

from pydantic import BaseModel, Field

from recipe_ai.models.inventory import InventoryIngredient, MealType
from recipe_ai.models.recipe import UserPreferences


class EventParticipant(BaseModel):
    """An accepted participant contributing inventory to an event."""

    name: Optional[str] = None
    inventory: List[InventoryIngredient] = Field(default_factory=list)
    preferences: Optional[UserPreferences] = None


class EventRecipeRequest(BaseModel):
    """Request body for collaborative recipe generation."""

    eventTitle: str = Field(..., min_length=1)
    mealType: MealType
    participants: List[EventParticipant] = Field(..., min_length=1)
