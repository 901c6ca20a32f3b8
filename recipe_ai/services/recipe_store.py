"""
Recipe persistence helpers.

``InMemoryRecipeStore`` doubles as the recipe-history reader of the
generation pipeline. ``create_recipe`` reports problems in its result instead
of raising.
"""

from __future__ import annotations

import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from pydantic import BaseModel

from recipe_ai.config import settings
from recipe_ai.models.inventory import InventoryIngredient
from recipe_ai.models.recipe import (
    GeneratedRecipe,
    RecipeCreationOptions,
    RecipeCreationResult,
    StoredRecipe,
)

logger = logging.getLogger(__name__)

MAX_RECIPES_PER_USER = 500


class RecipeStore(Protocol):
    async def add(self, recipe: StoredRecipe) -> StoredRecipe:
        ...

    async def list_recipes(self, user_id: str) -> List[StoredRecipe]:
        ...

    async def recent_recipes(self, user_id: str, limit: int) -> List[StoredRecipe]:
        ...


class InMemoryRecipeStore:
    """Per-user recipe lists kept in process memory, newest first."""

    def __init__(self, max_per_user: int = MAX_RECIPES_PER_USER) -> None:
        self.max_per_user = max_per_user
        self._recipes: Dict[str, List[StoredRecipe]] = defaultdict(list)

    async def add(self, recipe: StoredRecipe) -> StoredRecipe:
        recipes = self._recipes[recipe.userId]
        recipes.insert(0, recipe)
        del recipes[self.max_per_user:]
        return recipe

    async def list_recipes(self, user_id: str) -> List[StoredRecipe]:
        return sorted(self._recipes.get(user_id, []), key=lambda r: r.createdAt, reverse=True)

    async def recent_recipes(self, user_id: str, limit: int) -> List[StoredRecipe]:
        return (await self.list_recipes(user_id))[:limit]

    def clear(self) -> None:
        self._recipes.clear()


def _ingredient_payload(item: Any) -> Any:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    if isinstance(item, str):
        return {"name": item}
    return item


async def create_recipe(
    store: RecipeStore,
    recipe: GeneratedRecipe,
    options: RecipeCreationOptions,
) -> RecipeCreationResult:
    """Apply caller overrides, validate required fields and persist."""
    title = options.customTitle or recipe.title
    description = options.customDescription or recipe.description

    missing = [
        name
        for name, value in (
            ("title", title),
            ("description", description),
            ("instructions", recipe.instructions),
        )
        if not value or not value.strip()
    ]
    if missing:
        logger.warning("Refusing to store incomplete recipe", extra={"missing": missing})
        return RecipeCreationResult(
            success=False,
            error="Datos de receta incompletos",
            details=f"Faltan campos requeridos: {', '.join(missing)}",
        )

    ingredients = options.ingredients or recipe.ingredients
    try:
        stored = await store.add(
            StoredRecipe(
                userId=options.userId,
                title=title,
                description=description,
                ingredients=json.dumps([_ingredient_payload(i) for i in ingredients], ensure_ascii=False),
                instructions=recipe.instructions,
                cookingTime=options.customCookingTime or recipe.cookingTime,
                difficulty=options.customDifficulty or recipe.difficulty,
                servings=options.customServings or recipe.servings,
                healthConditions=options.healthConditions,
            )
        )
    except Exception as e:
        logger.error("Error storing recipe: %s", e, exc_info=True)
        return RecipeCreationResult(
            success=False,
            error="Error interno del servidor",
            details=str(e),
        )

    logger.info("Recipe stored", extra={"recipe_id": stored.id, "user_id": stored.userId})
    return RecipeCreationResult(
        success=True,
        recipe=stored,
        suggestedIngredients=list(recipe.suggestedIngredients),
        message="Receta creada exitosamente",
    )


# ---------------------------------------------------------------------------
# Specific-ingredient cache
# ---------------------------------------------------------------------------


@dataclass
class _CacheEntry:
    recipe: StoredRecipe
    stored_at: float


class RecipeCache:
    """TTL cache of specific-ingredient recipes keyed by the ingredient set."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = settings.recipe_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[Tuple[str, ...], _CacheEntry] = {}

    @staticmethod
    def key(ingredients: Iterable[str]) -> Tuple[str, ...]:
        return tuple(sorted(name.strip().lower() for name in ingredients if name and name.strip()))

    def get(self, ingredients: Iterable[str]) -> Optional[StoredRecipe]:
        key = self.key(ingredients)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        logger.info("Recipe cache hit", extra={"ingredients": list(key)})
        return entry.recipe

    def prune(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now - entry.stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def set(self, ingredients: Iterable[str], recipe: StoredRecipe) -> None:
        self.prune()
        self._entries[self.key(ingredients)] = _CacheEntry(recipe=recipe, stored_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Inventory formatting
# ---------------------------------------------------------------------------


def format_inventory_ingredients(rows: Iterable[Dict[str, Any]]) -> List[InventoryIngredient]:
    """
    Normalise inventory rows into ``InventoryIngredient``.

    Rows may be flat (``{name, quantity, unit, category}``) or nest the food
    (``{food: {name, category}, quantity, unit}``). Rows without a name are
    skipped; quantity, unit and category default to 1, PIECE and OTHER.
    """
    items = []
    for row in rows:
        food = row.get("food") if isinstance(row.get("food"), dict) else {}
        name = food.get("name") or row.get("name")
        if not isinstance(name, str) or not name.strip():
            logger.warning("Skipping inventory row without a name: %r", row)
            continue
        items.append(
            InventoryIngredient(
                name=name,
                quantity=row.get("quantity") or 1,
                unit=row.get("unit") or "PIECE",
                category=food.get("category") or row.get("category") or "OTHER",
            )
        )
    return items


def format_specific_ingredients(names: Iterable[str]) -> List[Dict[str, Any]]:
    return [{"name": name.strip(), "quantity": 1, "unit": "PIECE"} for name in names if name and name.strip()]
