"""Collaborative event endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from recipe_ai.api.cancellation import run_cancellable
from recipe_ai.api.dependencies import get_recipe_generator, get_recipe_store, get_user_id
from recipe_ai.api.routes.recipes import creation_response
from recipe_ai.config import settings
from recipe_ai.middleware.rate_limit import rate_limit_dependency
from recipe_ai.models.event import EventRecipeRequest
from recipe_ai.models.recipe import RecipeCreationOptions, RecipeCreationResult
from recipe_ai.services.recipe_generator import RecipeGenerator
from recipe_ai.services.recipe_store import InMemoryRecipeStore, create_recipe

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["events"])


@router.post("/generate-recipe", response_model=RecipeCreationResult)
async def generate_event_recipe(
    request: Request,
    body: EventRecipeRequest,
    user_id: str = Depends(get_user_id),
    _: None = Depends(rate_limit_dependency),
    generator: RecipeGenerator = Depends(get_recipe_generator),
    store: InMemoryRecipeStore = Depends(get_recipe_store),
) -> JSONResponse:
    """
    Generate one recipe from the combined inventories of the event participants.

    The recipe is stored for the caller (the event creator).
    """
    logger.info(
        "Route /events/generate-recipe called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/events/generate-recipe",
            "params": {
                "event_title": body.eventTitle,
                "meal_type": body.mealType.value,
                "participants": len(body.participants),
            },
        },
    )

    async def operation(cancel_event) -> RecipeCreationResult:
        recipe = await generator.generate_event_recipe(
            body.participants,
            body.mealType,
            body.eventTitle,
            user_id=user_id,
            cancel_event=cancel_event,
        )
        return await create_recipe(
            store,
            recipe,
            RecipeCreationOptions(
                userId=user_id,
                ingredients=[item for p in body.participants for item in p.inventory],
                customTitle=f"Receta colaborativa: {body.eventTitle}",
                customServings=recipe.servings,
                healthConditions=sorted(
                    {c for p in body.participants if p.preferences for c in p.preferences.healthConditions}
                ),
            ),
        )

    result = await run_cancellable(request, operation, settings.generation_timeout_seconds)
    return creation_response(result)
