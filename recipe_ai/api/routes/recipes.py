"""Recipe generation endpoints."""

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from recipe_ai.api.cancellation import run_cancellable
from recipe_ai.api.dependencies import get_recipe_cache, get_recipe_generator, get_recipe_store, get_user_id
from recipe_ai.config import settings
from recipe_ai.middleware.rate_limit import rate_limit_dependency
from recipe_ai.models.inventory import MealType
from recipe_ai.models.recipe import (
    DEFAULT_COOKING_TIME,
    DEFAULT_DIFFICULTY,
    DEFAULT_SERVINGS,
    GenerationOptions,
    RecipeCreationOptions,
    RecipeCreationResult,
    RecipePreferences,
    StoredRecipe,
    UserPreferences,
)
from recipe_ai.services.recipe_generator import RecipeGenerator
from recipe_ai.services.recipe_store import (
    InMemoryRecipeStore,
    RecipeCache,
    create_recipe,
    format_inventory_ingredients,
    format_specific_ingredients,
)
from recipe_ai.utils.exceptions import ValidationError
from recipe_ai.utils.validators import validate_ingredients_list

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recipes", tags=["recipes"])


class IngredientName(BaseModel):
    name: str


class GenerateRecipeRequest(BaseModel):
    """Request model for simple generation."""

    ingredients: List[Union[IngredientName, str]]
    preferences: Optional[RecipePreferences] = None


class GenerateFromInventoryRequest(BaseModel):
    """Request model for inventory-based generation."""

    inventory: List[Dict[str, Any]] = Field(..., description="Inventory rows, flat or with a nested food")
    mealType: MealType
    servings: Optional[int] = Field(None, ge=1, le=50)
    suggestIngredients: bool = False
    customTitle: Optional[str] = None
    customDescription: Optional[str] = None
    preferredIngredients: List[str] = Field(default_factory=list)
    userPreferences: Optional[UserPreferences] = None


class GenerateSpecificRequest(BaseModel):
    """Request model for generation from a fixed ingredient set."""

    specificIngredients: List[str] = Field(..., min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    servings: Optional[int] = Field(None, ge=1, le=50)
    difficulty: Optional[str] = None
    cookingTime: Optional[int] = Field(None, ge=1)
    preferences: Optional[RecipePreferences] = None


def creation_response(result: RecipeCreationResult, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Serialize a creation result; failed creations become a 500."""
    if not result.success:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.post("/generate", response_model=RecipeCreationResult, status_code=status.HTTP_201_CREATED)
async def generate_recipe(
    request: Request,
    body: GenerateRecipeRequest,
    user_id: str = Depends(get_user_id),
    _: None = Depends(rate_limit_dependency),
    generator: RecipeGenerator = Depends(get_recipe_generator),
    store: InMemoryRecipeStore = Depends(get_recipe_store),
) -> JSONResponse:
    """
    Generate a recipe from a list of ingredients and store it.

    - **ingredients**: ingredient names, or objects with a ``name``
    - **preferences**: optional cookingTime / difficulty / servings / dietaryRestrictions
    """
    names = validate_ingredients_list([i if isinstance(i, str) else i.name for i in body.ingredients])
    logger.info(
        "Route /recipes/generate called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/recipes/generate",
            "params": {"ingredients": names, "has_preferences": body.preferences is not None},
        },
    )

    async def operation(_cancel_event) -> RecipeCreationResult:
        recipe = await generator.generate_recipe(names, body.preferences)
        return await create_recipe(
            store,
            recipe,
            RecipeCreationOptions(userId=user_id, ingredients=format_specific_ingredients(names)),
        )

    result = await run_cancellable(request, operation, settings.generation_timeout_seconds)
    return creation_response(result, status.HTTP_201_CREATED)


@router.post("/generate-from-inventory", response_model=RecipeCreationResult)
async def generate_from_inventory(
    request: Request,
    body: GenerateFromInventoryRequest,
    user_id: str = Depends(get_user_id),
    _: None = Depends(rate_limit_dependency),
    generator: RecipeGenerator = Depends(get_recipe_generator),
    store: InMemoryRecipeStore = Depends(get_recipe_store),
) -> JSONResponse:
    """Generate a meal-type recipe from the caller's inventory and store it."""
    inventory = format_inventory_ingredients(body.inventory)
    if not inventory:
        raise ValidationError("No tienes ingredientes en tu inventario")

    logger.info(
        "Route /recipes/generate-from-inventory called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/recipes/generate-from-inventory",
            "params": {
                "meal_type": body.mealType.value,
                "inventory_count": len(inventory),
                "servings": body.servings,
                "suggest_ingredients": body.suggestIngredients,
            },
        },
    )

    options = GenerationOptions(
        customTitle=body.customTitle,
        customDescription=body.customDescription,
        preferredIngredients=body.preferredIngredients,
        userPreferences=body.userPreferences,
    )

    async def operation(cancel_event) -> RecipeCreationResult:
        recipe = await generator.generate_recipe_with_inventory(
            inventory,
            body.mealType,
            servings=body.servings,
            suggest_ingredients=body.suggestIngredients,
            options=options,
            user_id=user_id,
            cancel_event=cancel_event,
        )
        return await create_recipe(
            store,
            recipe,
            RecipeCreationOptions(
                userId=user_id,
                ingredients=inventory,
                customTitle=body.customTitle,
                customDescription=body.customDescription,
                customServings=body.servings,
                healthConditions=body.userPreferences.healthConditions if body.userPreferences else [],
            ),
        )

    result = await run_cancellable(request, operation, settings.generation_timeout_seconds)
    return creation_response(result)


@router.post("/generate-specific", response_model=RecipeCreationResult)
async def generate_specific(
    request: Request,
    body: GenerateSpecificRequest,
    user_id: str = Depends(get_user_id),
    _: None = Depends(rate_limit_dependency),
    generator: RecipeGenerator = Depends(get_recipe_generator),
    store: InMemoryRecipeStore = Depends(get_recipe_store),
    cache: RecipeCache = Depends(get_recipe_cache),
) -> JSONResponse:
    """Generate (or reuse from cache) a recipe for an exact ingredient set."""
    names = validate_ingredients_list(body.specificIngredients)
    logger.info(
        "Route /recipes/generate-specific called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/recipes/generate-specific",
            "params": {"ingredients": names, "title": body.title},
        },
    )

    cached = cache.get(names)
    if cached is not None:
        return creation_response(RecipeCreationResult(success=True, recipe=cached, fromCache=True))

    preferences = RecipePreferences(
        cookingTime=body.cookingTime or DEFAULT_COOKING_TIME,
        difficulty=body.difficulty or DEFAULT_DIFFICULTY,
        servings=body.servings or DEFAULT_SERVINGS,
        dietaryRestrictions=body.preferences.dietaryRestrictions if body.preferences else [],
    )

    async def operation(_cancel_event) -> RecipeCreationResult:
        recipe = await generator.generate_recipe(names, preferences)
        return await create_recipe(
            store,
            recipe,
            RecipeCreationOptions(
                userId=user_id,
                ingredients=format_specific_ingredients(names),
                customTitle=body.title,
                customDescription=body.description,
                customServings=body.servings,
                customCookingTime=body.cookingTime,
                customDifficulty=body.difficulty,
            ),
        )

    result = await run_cancellable(request, operation, settings.generation_timeout_seconds)
    if result.success and result.recipe is not None:
        cache.set(names, result.recipe)
    return creation_response(result)


@router.get("", response_model=List[StoredRecipe])
async def list_recipes(
    user_id: str = Depends(get_user_id),
    store: InMemoryRecipeStore = Depends(get_recipe_store),
) -> List[StoredRecipe]:
    """Caller's stored recipes, newest first."""
    return await store.list_recipes(user_id)
