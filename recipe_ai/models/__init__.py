"""Pydantic models."""

from recipe_ai.models.event import EventParticipant, EventRecipeRequest
from recipe_ai.models.inventory import (
    Category,
    DetectedIngredient,
    IngredientAnalysis,
    InventoryIngredient,
    MealType,
    Unit,
)
from recipe_ai.models.meal_plan import DayMeals, MealPlanDay, PlannedMeal
from recipe_ai.models.recipe import (
    GeneratedRecipe,
    GeneratedRecipeWithInventory,
    GenerationOptions,
    RecipeCreationOptions,
    RecipeCreationResult,
    RecipeIngredient,
    RecipePreferences,
    StoredRecipe,
    UserPreferences,
)

__all__ = [
    "Category",
    "DayMeals",
    "DetectedIngredient",
    "EventParticipant",
    "EventRecipeRequest",
    "GeneratedRecipe",
    "GeneratedRecipeWithInventory",
    "GenerationOptions",
    "IngredientAnalysis",
    "InventoryIngredient",
    "MealPlanDay",
    "MealType",
    "PlannedMeal",
    "RecipeCreationOptions",
    "RecipeCreationResult",
    "RecipeIngredient",
    "RecipePreferences",
    "StoredRecipe",
    "Unit",
    "UserPreferences",
]
