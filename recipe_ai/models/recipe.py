"""Recipe Pydantic models."""

from datetime import datetime, timezone
from typing import Any, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from recipe_ai.models.inventory import InventoryIngredient, Unit

DEFAULT_TITLE = "Receta Generada"
DEFAULT_DESCRIPTION = "Receta preparada con los ingredientes disponibles."
DEFAULT_INSTRUCTIONS = (
    "No fue posible interpretar los pasos generados. "
    "Intenta generar la receta nuevamente."
)
DEFAULT_COOKING_TIME = 30
DEFAULT_DIFFICULTY = "Fácil"
DEFAULT_SERVINGS = 4


class RecipeIngredient(BaseModel):
    """Ingredient line as reported by the model."""

    name: str = Field(..., description="Ingredient name")
    quantity: float = Field(1, description="Amount, 1 when the model gave none")
    unit: str = Field(Unit.PIECE.value, description="Unit code, PIECE when unknown")


class GeneratedRecipe(BaseModel):
    """Normalized recipe returned by every generation entry point."""

    title: str = Field(DEFAULT_TITLE, description="Recipe title")
    description: str = Field(DEFAULT_DESCRIPTION, description="Short description")
    instructions: str = Field(
        DEFAULT_INSTRUCTIONS, description="Steps separated by blank lines, never a list"
    )
    cookingTime: int = Field(DEFAULT_COOKING_TIME, description="Cooking time in minutes")
    difficulty: str = Field(DEFAULT_DIFFICULTY, description="Difficulty label")
    servings: int = Field(DEFAULT_SERVINGS, description="Number of servings")
    suggestedIngredients: List[str] = Field(
        default_factory=list, description="Extra ingredients the model suggests buying"
    )
    ingredients: List[RecipeIngredient] = Field(
        default_factory=list, description="Ingredients the model listed, when it listed any"
    )


class GeneratedRecipeWithInventory(GeneratedRecipe):
    """Generated recipe plus the inventory subset it was built from."""

    mealType: str = Field(..., description="Meal type the recipe targets")
    selectedIngredients: List[InventoryIngredient] = Field(
        default_factory=list, description="Preselected inventory items sent to the model"
    )


class RecipePreferences(BaseModel):
    """Optional constraints for the simple ingredient-list generation."""

    cookingTime: Optional[int] = Field(None, description="Maximum cooking time in minutes")
    difficulty: Optional[str] = None
    servings: Optional[int] = None
    dietaryRestrictions: List[str] = Field(default_factory=list)


class UserPreferences(BaseModel):
    """Onboarding preferences of a user (or merged preferences of a group)."""

    healthConditions: List[str] = Field(default_factory=list)
    customHealthConditions: List[str] = Field(default_factory=list)
    personalGoals: List[str] = Field(default_factory=list)
    customPersonalGoals: List[str] = Field(default_factory=list)
    cookingSkill: Literal["mucho", "mas_o_menos", "poco"] = "mas_o_menos"
    cookingTime: Literal["mucho", "mas_o_menos", "poco"] = "mas_o_menos"
    servings: int = DEFAULT_SERVINGS
    country: Optional[str] = None


class GenerationOptions(BaseModel):
    """Caller customisations for inventory-based generation."""

    customTitle: Optional[str] = None
    customDescription: Optional[str] = None
    preferredIngredients: List[str] = Field(default_factory=list)
    userPreferences: Optional[UserPreferences] = None


class StoredRecipe(BaseModel):
    """Recipe as persisted for a user."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    userId: str
    title: str
    description: str
    ingredients: str = Field("[]", description="JSON-encoded ingredient list")
    instructions: str
    cookingTime: Optional[int] = None
    difficulty: Optional[str] = None
    servings: Optional[int] = None
    healthConditions: List[str] = Field(default_factory=list)
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RecipeCreationOptions(BaseModel):
    """Persistence-time overrides applied on top of a generated recipe."""

    userId: str
    ingredients: List[Any] = Field(default_factory=list)
    customTitle: Optional[str] = None
    customDescription: Optional[str] = None
    customServings: Optional[int] = None
    customCookingTime: Optional[int] = None
    customDifficulty: Optional[str] = None
    healthConditions: List[str] = Field(default_factory=list)


class RecipeCreationResult(BaseModel):
    """Outcome of persisting a recipe; failures are reported, not raised."""

    success: bool
    recipe: Optional[StoredRecipe] = None
    suggestedIngredients: List[str] = Field(default_factory=list)
    fromCache: bool = False
    message: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
