"""Meal plan endpoint."""

import logging
from datetime import date
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from recipe_ai.api.cancellation import run_cancellable
from recipe_ai.api.dependencies import get_recipe_generator
from recipe_ai.config import settings
from recipe_ai.middleware.rate_limit import rate_limit_dependency
from recipe_ai.models.meal_plan import MealPlanDay
from recipe_ai.services.recipe_generator import RecipeGenerator
from recipe_ai.services.recipe_store import format_inventory_ingredients

logger = logging.getLogger(__name__)
router = APIRouter(tags=["meal-plans"])

MAX_PLAN_DAYS = 31


class MealPlanRequest(BaseModel):
    """Request model for meal plan generation."""

    inventory: List[Dict[str, Any]] = Field(default_factory=list)
    days: int = Field(..., ge=1, le=MAX_PLAN_DAYS)
    startDate: date


class MealPlanResponse(BaseModel):
    mealPlan: List[MealPlanDay]


@router.post("/generate-meal-plan", response_model=MealPlanResponse)
async def generate_meal_plan(
    request: Request,
    body: MealPlanRequest,
    _: None = Depends(rate_limit_dependency),
    generator: RecipeGenerator = Depends(get_recipe_generator),
) -> MealPlanResponse:
    """Plan ``days`` days of meals starting at ``startDate``."""
    inventory = format_inventory_ingredients(body.inventory)
    logger.info(
        "Route /generate-meal-plan called",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "route": "/generate-meal-plan",
            "params": {"days": body.days, "start_date": body.startDate.isoformat(), "inventory_count": len(inventory)},
        },
    )

    async def operation(_cancel_event) -> List[MealPlanDay]:
        return await generator.generate_meal_plan(inventory, body.days, body.startDate)

    plan = await run_cancellable(request, operation, settings.generation_timeout_seconds)
    return MealPlanResponse(mealPlan=plan)
