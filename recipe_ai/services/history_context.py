"""
Exclusion hints built from a user's most recent recipes.

Failures here never abort a generation: ``collect_history`` reports them as a
``HistoryFailure`` so they can be logged, and ``build_exclusion_context``
resolves any failure to an empty string.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Set, Union

from recipe_ai.models.recipe import StoredRecipe
from recipe_ai.services.meal_rules import MealRules, get_meal_rules

logger = logging.getLogger(__name__)


class RecipeHistoryReader(Protocol):
    """Anything that can list a user's recipes, newest first."""

    async def recent_recipes(self, user_id: str, limit: int) -> List[StoredRecipe]:
        ...


@dataclass
class HistorySample:
    ingredients: Set[str] = field(default_factory=set)
    titles: Set[str] = field(default_factory=set)
    methods: Set[str] = field(default_factory=set)
    skipped: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.ingredients or self.titles or self.methods)


@dataclass(frozen=True)
class HistoryLoaded:
    sample: HistorySample


@dataclass(frozen=True)
class HistoryFailure:
    error: Exception


HistoryResult = Union[HistoryLoaded, HistoryFailure]


def _ingredient_names(encoded: str) -> List[str]:
    items = json.loads(encoded or "[]")
    if not isinstance(items, list):
        raise ValueError("ingredients is not a JSON list")
    names = []
    for item in items:
        if isinstance(item, dict):
            name = item.get("name")
        else:
            name = item
        if isinstance(name, str) and name.strip():
            names.append(name.strip().lower())
    return names


def detect_cooking_methods(instructions: str, rules: MealRules) -> Set[str]:
    text = (instructions or "").lower()
    return {
        label
        for label, keywords in rules.cookingMethods.items()
        if any(keyword in text for keyword in keywords)
    }


def build_history_sample(recipes: Sequence[StoredRecipe], rules: Optional[MealRules] = None) -> HistorySample:
    """Collect ingredient names, titles and cooking methods; bad rows are skipped."""
    rules = rules or get_meal_rules()
    sample = HistorySample()
    for recipe in recipes:
        try:
            names = _ingredient_names(recipe.ingredients)
        except (ValueError, TypeError) as e:
            logger.warning("Skipping recipe %s in history sample: %s", recipe.id, e)
            sample.skipped += 1
            continue
        sample.ingredients.update(names)
        if recipe.title and recipe.title.strip():
            sample.titles.add(recipe.title.strip().lower())
        sample.methods.update(detect_cooking_methods(recipe.instructions, rules))
    return sample


async def collect_history(
    reader: RecipeHistoryReader,
    user_id: str,
    limit: int = 3,
    rules: Optional[MealRules] = None,
) -> HistoryResult:
    try:
        recipes = await reader.recent_recipes(user_id, limit)
        return HistoryLoaded(sample=build_history_sample(recipes[:limit], rules))
    except Exception as e:
        return HistoryFailure(error=e)


def render_exclusion_context(sample: HistorySample) -> str:
    """Fixed-format block telling the model what to stay away from."""
    if sample.is_empty:
        return ""
    lines = ["HISTORIAL RECIENTE DEL USUARIO (evita repetir):"]
    if sample.ingredients:
        lines.append(f"- Ingredientes usados recientemente: {', '.join(sorted(sample.ingredients))}")
    if sample.titles:
        lines.append(f"- Recetas recientes: {', '.join(sorted(sample.titles))}")
    if sample.methods:
        lines.append(f"- Métodos de cocción usados: {', '.join(sorted(sample.methods))}")
    lines.append(
        "Crea una receta DIFERENTE: otro título, otra combinación de ingredientes principales "
        "y, si es posible, otro método de cocción."
    )
    return "\n".join(lines)


async def build_exclusion_context(
    reader: Optional[RecipeHistoryReader],
    user_id: Optional[str],
    limit: int = 3,
    rules: Optional[MealRules] = None,
) -> str:
    """Exclusion text for the prompt, or an empty string when there is none."""
    if reader is None or not user_id:
        return ""

    result = await collect_history(reader, user_id, limit=limit, rules=rules)
    if isinstance(result, HistoryFailure):
        logger.warning(
            "Recipe history unavailable, generating without exclusion hints: %s",
            result.error,
            extra={"user_id": user_id},
        )
        return ""

    if result.sample.skipped:
        logger.info("History sample skipped %d unreadable recipes", result.sample.skipped)
    return render_exclusion_context(result.sample)
