"""
Recipe generation orchestrator.

Key design:
- Inventory generation = preselect -> history exclusion -> prompt -> model ->
  parse/normalize, wrapped in a RetryPolicy that only retries overload errors.
- Parse problems never surface: the parser always yields a usable recipe.
- Final failures are re-raised as one of ModelConnectionError,
  ModelRateLimitError or GenerationError with a Spanish message for the UI.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional, Sequence

from recipe_ai.config import settings
from recipe_ai.models.event import EventParticipant
from recipe_ai.models.inventory import InventoryIngredient, MealType
from recipe_ai.models.meal_plan import MealPlanDay
from recipe_ai.models.recipe import (
    GeneratedRecipe,
    GeneratedRecipeWithInventory,
    GenerationOptions,
    RecipePreferences,
    UserPreferences,
)
from recipe_ai.services.history_context import RecipeHistoryReader, build_exclusion_context
from recipe_ai.services.meal_planner import parse_meal_plan
from recipe_ai.services.meal_rules import MealRules, get_meal_rules
from recipe_ai.services.model_client import ImageAttachment, ModelClient
from recipe_ai.services.preselection import MAX_SELECTED, keyword_matches, preselect, prioritize_preferred
from recipe_ai.services.prompt_builder import (
    build_inventory_prompt,
    build_meal_plan_prompt,
    build_simple_prompt,
)
from recipe_ai.services.response_parser import parse_recipe
from recipe_ai.services.retry import RetryPolicy, is_connection_error
from recipe_ai.utils.exceptions import (
    GenerationCancelled,
    GenerationError,
    ModelConnectionError,
    ModelRateLimitError,
    RecipeAIException,
    ValidationError,
)

logger = logging.getLogger(__name__)

CONNECTION_MESSAGE = (
    "No se pudo conectar con el servicio de IA. "
    "Verifica que el servicio del modelo esté en ejecución."
)
RATE_LIMIT_MESSAGE = (
    "Se alcanzó el límite de solicitudes al servicio de IA. "
    "Espera unos minutos e intenta nuevamente."
)
DEFAULT_SERVINGS_PER_PARTICIPANT = 2


def final_error(error: Exception) -> RecipeAIException:
    """Map the last model failure to the exception surfaced to callers."""
    if is_connection_error(error):
        return ModelConnectionError(f"{CONNECTION_MESSAGE} Detalle: {error}")
    if "429" in str(error):
        return ModelRateLimitError(RATE_LIMIT_MESSAGE)
    return GenerationError(f"Error al generar la receta: {error}")


def _first_unique(inventory: Sequence[InventoryIngredient], limit: int) -> List[InventoryIngredient]:
    result: List[InventoryIngredient] = []
    seen: set[str] = set()
    for item in inventory:
        key = item.name.strip().lower()
        if key and key not in seen:
            result.append(item)
            seen.add(key)
        if len(result) >= limit:
            break
    return result


def merge_participant_preferences(participants: Sequence[EventParticipant]) -> UserPreferences:
    """
    Union of every participant's conditions and goals.

    Servings are the sum of the participants' own servings, or two per
    participant when nobody set any. Skill and time stay at the middle value.
    """
    conditions: List[str] = []
    goals: List[str] = []
    total_servings = 0
    country: Optional[str] = None

    for participant in participants:
        prefs = participant.preferences
        if prefs is None:
            continue
        for value in (*prefs.healthConditions, *prefs.customHealthConditions):
            if value not in conditions:
                conditions.append(value)
        for value in (*prefs.personalGoals, *prefs.customPersonalGoals):
            if value not in goals:
                goals.append(value)
        total_servings += prefs.servings
        country = country or prefs.country

    return UserPreferences(
        healthConditions=conditions,
        personalGoals=goals,
        cookingSkill="mas_o_menos",
        cookingTime="mas_o_menos",
        servings=total_servings or len(participants) * DEFAULT_SERVINGS_PER_PARTICIPANT,
        country=country,
    )


class RecipeGenerator:
    """Entry points of the generation pipeline."""

    def __init__(
        self,
        model_client: ModelClient,
        history_reader: Optional[RecipeHistoryReader] = None,
        retry_policy: Optional[RetryPolicy] = None,
        rules: Optional[MealRules] = None,
        history_limit: Optional[int] = None,
    ) -> None:
        self.model_client = model_client
        self.history_reader = history_reader
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.rules = rules or get_meal_rules(settings.meal_rules_path)
        self.history_limit = history_limit or settings.history_sample_size

    # ---------------------------------------------------------------------
    # Simple generation
    # ---------------------------------------------------------------------

    async def generate_recipe(
        self,
        ingredients: Sequence[str],
        preferences: Optional[RecipePreferences] = None,
    ) -> GeneratedRecipe:
        """Single-shot recipe from an ingredient list. No preselection, history or retries."""
        names = [name.strip() for name in ingredients if name and name.strip()]
        if not names:
            raise ValidationError("Se requiere al menos un ingrediente")

        prompt = build_simple_prompt(names, preferences)
        logger.info("Generating recipe from %d ingredients", len(names))
        try:
            raw = await self.model_client.generate_text(prompt)
        except Exception as e:
            logger.error("Recipe generation failed: %s", e, exc_info=True)
            raise final_error(e) from e

        servings = preferences.servings if preferences else None
        return parse_recipe(raw, servings=servings)

    # ---------------------------------------------------------------------
    # Inventory generation
    # ---------------------------------------------------------------------

    def select_ingredients(
        self,
        inventory: Sequence[InventoryIngredient],
        meal_type: MealType,
        preferred: Sequence[str] = (),
    ) -> List[InventoryIngredient]:
        selected = preselect(inventory, meal_type, rules=self.rules)
        selected = prioritize_preferred(inventory, preferred, selected)
        if not selected:
            avoid = self.rules.for_meal(meal_type).avoid
            allowed = [item for item in inventory if not keyword_matches(item.name, avoid)]
            selected = _first_unique(allowed, MAX_SELECTED)
            logger.warning(
                "No inventory item matched %s keywords; using the first %d items not on the avoid list",
                MealType(meal_type).value,
                len(selected),
            )
        return selected

    async def generate_recipe_with_inventory(
        self,
        inventory: Sequence[InventoryIngredient],
        meal_type: MealType,
        servings: Optional[int] = None,
        suggest_ingredients: bool = False,
        options: Optional[GenerationOptions] = None,
        user_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
        image: Optional[ImageAttachment] = None,
    ) -> GeneratedRecipeWithInventory:
        """
        Meal-type recipe from the user's inventory.

        Overload errors are retried with backoff; connection and other errors
        fail on the first attempt. ``cancel_event`` stops the loop between
        attempts and during backoff.
        """
        if not inventory:
            raise ValidationError("El inventario no tiene ingredientes")

        meal_type = MealType(meal_type)
        options = options or GenerationOptions()
        if servings is None and options.userPreferences is not None:
            servings = options.userPreferences.servings

        selected = self.select_ingredients(inventory, meal_type, options.preferredIngredients)
        exclusion_context = await build_exclusion_context(
            self.history_reader, user_id, limit=self.history_limit, rules=self.rules
        )
        prompt = build_inventory_prompt(
            selected,
            meal_type,
            exclusion_context=exclusion_context,
            servings=servings,
            suggest_ingredients=suggest_ingredients,
            options=options,
            image=image,
            rules=self.rules,
        )

        async def attempt(number: int) -> GeneratedRecipe:
            logger.info(
                "Recipe generation attempt %d/%d (%s)",
                number,
                self.retry_policy.max_attempts,
                meal_type.value,
                extra={"model": self.model_client.model_name},
            )
            raw = await self.model_client.generate_text(prompt)
            return parse_recipe(raw, servings=servings)

        try:
            recipe = await self.retry_policy.run(attempt, cancel_event=cancel_event)
        except GenerationCancelled:
            logger.info("Recipe generation cancelled by caller")
            raise
        except Exception as e:
            logger.error("Recipe generation failed: %s", e, exc_info=True)
            raise final_error(e) from e

        return GeneratedRecipeWithInventory(
            **recipe.model_dump(),
            mealType=meal_type.value,
            selectedIngredients=selected,
        )

    async def generate_event_recipe(
        self,
        participants: Sequence[EventParticipant],
        meal_type: MealType,
        event_title: str,
        user_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GeneratedRecipeWithInventory:
        """Collaborative recipe from the combined inventory of all participants."""
        if not participants:
            raise ValidationError("El evento no tiene participantes")

        inventory = [item for participant in participants for item in participant.inventory]
        preferences = merge_participant_preferences(participants)
        options = GenerationOptions(
            customTitle=f"Receta colaborativa: {event_title}",
            customDescription=(
                f'Receta creada para el evento "{event_title}" '
                "con ingredientes de todos los participantes"
            ),
            userPreferences=preferences,
        )
        logger.info(
            "Generating collaborative recipe for %d participants (%d items)",
            len(participants),
            len(inventory),
        )
        return await self.generate_recipe_with_inventory(
            inventory,
            meal_type,
            servings=preferences.servings,
            suggest_ingredients=True,
            options=options,
            user_id=user_id,
            cancel_event=cancel_event,
        )

    # ---------------------------------------------------------------------
    # Meal plans
    # ---------------------------------------------------------------------

    async def generate_meal_plan(
        self,
        inventory: Sequence[InventoryIngredient],
        days: int,
        start_date: date,
    ) -> List[MealPlanDay]:
        """Single-shot multi-day plan; unparseable output yields empty days."""
        if days < 1:
            raise ValidationError("La cantidad de días debe ser al menos 1")

        prompt = build_meal_plan_prompt(inventory, days, start_date)
        logger.info("Generating %d-day meal plan from %s", days, start_date.isoformat())
        try:
            raw = await self.model_client.generate_text(prompt)
        except Exception as e:
            logger.error("Meal plan generation failed: %s", e, exc_info=True)
            raise final_error(e) from e
        return parse_meal_plan(raw, days, start_date)
