"""Meal plan Pydantic models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class PlannedMeal(BaseModel):
    """A single planned meal in a day."""

    recipeId: str
    title: str
    ingredients: List[str] = Field(default_factory=list)


class DayMeals(BaseModel):
    """Meals planned for one day, keyed by meal slot."""

    breakfast: Optional[PlannedMeal] = None
    lunch: Optional[PlannedMeal] = None
    snack: Optional[PlannedMeal] = None
    dinner: Optional[PlannedMeal] = None


class MealPlanDay(BaseModel):
    """One calendar day of a generated plan."""

    date: str = Field(..., description="ISO date (YYYY-MM-DD)")
    meals: DayMeals = Field(default_factory=DayMeals)
